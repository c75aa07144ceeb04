"""Print booking totals and per-tier availability."""

from django.core.management.base import BaseCommand

from ticketing.domain import BookingStatus
from ticketing.services import BookingService, TicketService
from ticketing.services.notifications import EmailNotifier
from ticketing.stores.django_store import DjangoPersistence


class Command(BaseCommand):
    help = (
        "Show booking counts, revenue and remaining tickets per tier, flagging "
        "tiers whose sold count differs from their confirmed bookings."
    )

    def add_arguments(self, parser):
        parser.add_argument("--database", default="default", help="Database alias to report on.")

    def handle(self, *args, **options):
        with DjangoPersistence(options["database"]) as persistence:
            bookings = BookingService(persistence, EmailNotifier())
            summary = bookings.booking_summary()
            quotes = TicketService(persistence).list_tiers(active_only=False)
            confirmed = {quote.tier.id: bookings.confirmed_quantity(quote.tier.id) for quote in quotes}

        self.stdout.write(f"Bookings: {summary.total}")
        for status in BookingStatus:
            self.stdout.write(f"  {status.value}: {summary.count(status)}")
        self.stdout.write(f"Revenue: {summary.revenue}")
        for quote in quotes:
            availability = quote.availability
            self.stdout.write(
                f"{quote.tier.name}: {availability.sold}/{availability.capacity} sold, "
                f"{availability.remaining} left at {quote.price}"
            )
            if confirmed[quote.tier.id] != availability.sold:
                self.stdout.write(
                    self.style.WARNING(
                        f"  confirmed bookings hold {confirmed[quote.tier.id]}, "
                        f"ledger says {availability.sold}"
                    )
                )
