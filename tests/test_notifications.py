"""Tests for the email notifier.

Run with: pytest tests/test_notifications.py -v
"""

import socket
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from django.core.mail import get_connection

from ticketing.domain import Booking, BookingId, BookingStatus, Buyer, Event, EventId, Money, Quantity, TierId
from ticketing.services.notifications import EmailNotifier

NOW = datetime(2025, 5, 10, 9, 0, tzinfo=timezone.utc)


def make_booking(status: BookingStatus, unit_price: Money | None) -> Booking:
    return Booking(
        id=BookingId(uuid.uuid4()),
        buyer=Buyer(full_name="Aline Uwase", email="aline@example.com", phone_number="0788000000"),
        tier_id=TierId(uuid.uuid4()),
        tier_name="VIP",
        quantity=Quantity(2),
        payment_reference="MP240517.1200.A12345",
        payment_proof_url="/media/payment_proofs/a.png",
        status=status,
        created_at=NOW,
        updated_at=NOW,
        unit_price=unit_price,
    )


EVENT = Event(
    id=EventId(uuid.uuid4()),
    name="NTS Rockstar Party",
    description="",
    location="Nyanza TSS",
    starts_at=datetime(2025, 5, 17, 18, 0, tzinfo=timezone.utc),
    ends_at=datetime(2025, 5, 17, 22, 0, tzinfo=timezone.utc),
    payment_code="0791786228",
    payment_instructions="",
    updated_at=NOW,
)


def test_confirmation_email(mailoutbox):
    booking = make_booking(BookingStatus.CONFIRMED, Money(Decimal("5000")))
    EmailNotifier("tickets@example.com").notify_confirmed(booking, EVENT)

    message = mailoutbox[0]
    assert message.to == ["aline@example.com"]
    assert message.from_email == "tickets@example.com"
    assert message.subject == "Booking confirmed: NTS Rockstar Party"
    assert "Total paid: 10000.00" in message.body
    assert "Nyanza TSS" in message.body


def test_rejection_email_without_event(mailoutbox):
    booking = make_booking(BookingStatus.REJECTED, None)
    EmailNotifier("tickets@example.com").notify_rejected(booking, None)

    assert mailoutbox[0].subject == "Booking not approved: the event"
    assert "MP240517.1200.A12345" in mailoutbox[0].body


@pytest.fixture
def silent_smtp_server():
    """A listener that accepts connections but never sends the SMTP greeting."""
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(5)
    yield server.getsockname()[1]
    server.close()


def test_smtp_backend_has_a_timeout(settings):
    settings.EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    assert settings.EMAIL_TIMEOUT
    assert get_connection().timeout == settings.EMAIL_TIMEOUT


def test_silent_mail_server_times_out(settings, silent_smtp_server):
    settings.EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
    settings.EMAIL_HOST = "127.0.0.1"
    settings.EMAIL_PORT = silent_smtp_server
    settings.EMAIL_USE_TLS = False
    settings.EMAIL_TIMEOUT = 1
    booking = make_booking(BookingStatus.CONFIRMED, Money(Decimal("5000")))

    started = time.monotonic()
    with pytest.raises(OSError):
        EmailNotifier("tickets@example.com").notify_confirmed(booking, EVENT)

    assert time.monotonic() - started < 5
