"""Buyer notifications sent after a booking is decided.

Delivery is best-effort. The booking service catches and logs anything a
notifier raises, so a notifier never needs to guard itself. In production
the email notifier runs behind ``BackgroundNotifier`` so a slow mail server
never holds up the request that decided the booking.
"""

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import partial

from django.conf import settings
from django.core.mail import send_mail

from ticketing.domain import Booking, Event

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Sends messages about a booking to its buyer."""

    @abstractmethod
    def notify_confirmed(self, booking: Booking, event: Event | None) -> None:
        ...

    @abstractmethod
    def notify_rejected(self, booking: Booking, event: Event | None) -> None:
        ...


def _event_lines(event: Event | None) -> str:
    if event is None:
        return ""
    return (
        f"- Event: {event.name}\n"
        f"- Date: {event.starts_at:%d %B %Y, %H:%M}\n"
        f"- Location: {event.location}\n"
    )


class EmailNotifier(Notifier):
    """Plain-text email through Django's configured email backend."""

    def __init__(self, from_email: str | None = None) -> None:
        self._from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def _send(self, booking: Booking, subject: str, body: str) -> None:
        send_mail(
            subject=subject,
            message=body,
            from_email=self._from_email,
            recipient_list=[booking.buyer.email],
            fail_silently=False,
        )
        logger.info("Sent %r to booking %s", subject, booking.id)

    def notify_confirmed(self, booking: Booking, event: Event | None) -> None:
        event_name = event.name if event else "the event"
        body = (
            f"Dear {booking.buyer.full_name},\n\n"
            f"Your booking for {event_name} has been confirmed.\n\n"
            "Booking details:\n"
            f"- Ticket: {booking.tier_name}\n"
            f"- Quantity: {booking.quantity.value}\n"
            f"- Total paid: {booking.total_amount}\n"
            f"- Payment reference: {booking.payment_reference}\n"
            f"{_event_lines(event)}\n"
            "Please keep this email and bring a valid ID to the event.\n"
        )
        self._send(booking, f"Booking confirmed: {event_name}", body)

    def notify_rejected(self, booking: Booking, event: Event | None) -> None:
        event_name = event.name if event else "the event"
        body = (
            f"Dear {booking.buyer.full_name},\n\n"
            f"We could not approve your booking for {event_name}.\n\n"
            "Booking details:\n"
            f"- Ticket: {booking.tier_name}\n"
            f"- Payment reference: {booking.payment_reference}\n"
            f"{_event_lines(event)}\n"
            "If you believe this is a mistake, please contact the organisers.\n"
        )
        self._send(booking, f"Booking not approved: {event_name}", body)


_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def _shared_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="ticketing-notify")
        return _executor


def _log_failure(booking: Booking, future: Future) -> None:
    error = future.exception()
    if error is not None:
        logger.error("Notification for booking %s failed", booking.id, exc_info=error)


class BackgroundNotifier(Notifier):
    """Hands each message to a worker thread and returns at once.

    Failures are logged from the worker. The wrapped notifier must not use
    the database connection of the calling thread.
    """

    def __init__(self, notifier: Notifier, executor: Executor | None = None) -> None:
        self._notifier = notifier
        self._executor = executor

    def _submit(self, send, booking: Booking, event: Event | None) -> None:
        executor = self._executor or _shared_executor()
        future = executor.submit(send, booking, event)
        future.add_done_callback(partial(_log_failure, booking))

    def notify_confirmed(self, booking: Booking, event: Event | None) -> None:
        self._submit(self._notifier.notify_confirmed, booking, event)

    def notify_rejected(self, booking: Booking, event: Event | None) -> None:
        self._submit(self._notifier.notify_rejected, booking, event)
