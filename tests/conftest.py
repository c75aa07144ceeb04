"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from ticketing.domain import Booking, BookingRequest, Buyer, Event, Money, Quantity, TicketTier
from ticketing.services import BookingService, TicketService
from ticketing.services.notifications import Notifier
from ticketing.stores.memory_store import InMemoryPersistence

DISCOUNT_ENDS_AT = datetime(2025, 5, 17, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    """Clock whose current time is set by the test."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(Notifier):
    """Notifier that remembers what it was asked to send."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, Booking, Event | None]] = []

    def notify_confirmed(self, booking: Booking, event: Event | None) -> None:
        self.sent.append(("confirmed", booking, event))
        if self.fail:
            raise ConnectionError("SMTP server unavailable")

    def notify_rejected(self, booking: Booking, event: Event | None) -> None:
        self.sent.append(("rejected", booking, event))
        if self.fail:
            raise ConnectionError("SMTP server unavailable")


def booking_request(tier: TicketTier, quantity: int = 1, name: str = "Aline Uwase") -> BookingRequest:
    return BookingRequest(
        buyer=Buyer(
            full_name=name,
            email="Aline@Example.com ",
            phone_number="0788000000",
            student_level="Level 5",
            trade="Software Development",
        ),
        tier_id=tier.id,
        quantity=Quantity(quantity),
        payment_reference="MP240517.1200.A12345",
        payment_proof_url="https://cdn.example.com/payment_proofs/a.png",
    )


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def send_email_inline(settings):
    """Deliver email on the request thread so tests can read the outbox at once."""
    settings.TICKETING = {**settings.TICKETING, "SEND_EMAIL_IN_BACKGROUND": False}


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DISCOUNT_ENDS_AT - timedelta(days=1))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def memory_persistence():
    persistence = InMemoryPersistence()
    yield persistence
    persistence.close()


@pytest.fixture
def memory_service(memory_persistence, notifier, clock) -> BookingService:
    return BookingService(memory_persistence, notifier, clock=clock)


@pytest.fixture
def make_tier(memory_persistence):
    def _make(capacity: int = 10, price: str = "1000", discount_price: str | None = "800") -> TicketTier:
        return TicketService(memory_persistence).create_tier(
            name="Regular",
            price=Money(Decimal(price)),
            discount_price=Money(Decimal(discount_price)) if discount_price else None,
            discount_ends_at=DISCOUNT_ENDS_AT if discount_price else None,
            capacity=capacity,
        )

    return _make


@pytest.fixture
def make_request():
    return booking_request
