"""Service construction for request handlers."""

from django.conf import settings

from ticketing.services.booking_service import BookingService, build_booking_request
from ticketing.services.event_service import EventService
from ticketing.services.notifications import BackgroundNotifier, EmailNotifier, Notifier
from ticketing.services.payment_proofs import PaymentProofStorage
from ticketing.services.ticket_service import TicketService, TierQuote
from ticketing.stores.django_store import DjangoPersistence
from ticketing.stores.interfaces import Persistence


def booking_service(persistence: Persistence | None = None) -> BookingService:
    notifier: Notifier = EmailNotifier(settings.TICKETING["EMAIL_FROM"])
    if settings.TICKETING["SEND_EMAIL_IN_BACKGROUND"]:
        notifier = BackgroundNotifier(notifier)
    return BookingService(
        persistence=persistence or DjangoPersistence(),
        notifier=notifier,
        max_quantity=settings.TICKETING["MAX_QUANTITY_PER_BOOKING"],
    )


def ticket_service(persistence: Persistence | None = None) -> TicketService:
    return TicketService(persistence=persistence or DjangoPersistence())


def event_service(persistence: Persistence | None = None) -> EventService:
    persistence = persistence or DjangoPersistence()
    return EventService(persistence.events, settings.TICKETING["EVENT_DEFAULTS"])


__all__ = [
    "BackgroundNotifier",
    "BookingService",
    "EmailNotifier",
    "EventService",
    "Notifier",
    "PaymentProofStorage",
    "TicketService",
    "TierQuote",
    "booking_service",
    "build_booking_request",
    "event_service",
    "ticket_service",
]
