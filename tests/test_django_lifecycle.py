"""Booking lifecycle against the Django stores.

Run with: pytest tests/test_django_lifecycle.py -v
"""

import threading
from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from ticketing import models as orm
from ticketing.domain import BookingStatus, Money
from ticketing.domain.errors import InvalidTransitionError, SoldOutError, TierInUseError, UnauthorizedError
from ticketing.services import BookingService, EventService, TicketService
from ticketing.stores.django_store import DjangoPersistence

from conftest import DISCOUNT_ENDS_AT, booking_request

EVENT_DEFAULTS = {
    "NAME": "NTS Rockstar Party",
    "LOCATION": "Nyanza TSS",
    "STARTS_AT": "2025-05-17T18:00:00",
    "ENDS_AT": "2025-05-17T22:00:00",
    "PAYMENT_CODE": "0791786228",
}


@pytest.fixture
def persistence():
    return DjangoPersistence()


@pytest.fixture
def service(persistence, notifier, clock) -> BookingService:
    return BookingService(persistence, notifier, clock=clock)


@pytest.fixture
def tier(persistence):
    return TicketService(persistence).create_tier(
        name="Regular",
        price=Money(Decimal("1000")),
        discount_price=Money(Decimal("800")),
        discount_ends_at=DISCOUNT_ENDS_AT,
        capacity=1,
    )


def sold_in_db(tier) -> int:
    return orm.TicketTier.objects.get(pk=tier.id.value).sold


@pytest.mark.django_db
class TestDjangoLifecycle:
    def test_approve_commits_status_price_and_sold(self, service, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(str(booking.id), "confirmed", True)

        row = orm.Booking.objects.get(pk=booking.id.value)
        assert row.status == orm.Booking.Status.CONFIRMED
        assert row.unit_price == Decimal("800.00")
        assert sold_in_db(tier) == 1

    def test_sold_out_rolls_back_status_change(self, service, tier):
        first = service.create_booking(booking_request(tier))
        second = service.create_booking(booking_request(tier))
        service.set_status(first.id, "confirmed", True)

        with pytest.raises(SoldOutError):
            service.set_status(second.id, "confirmed", True)

        row = orm.Booking.objects.get(pk=second.id.value)
        assert row.status == orm.Booking.Status.PENDING
        assert row.unit_price is None
        assert sold_in_db(tier) == 1

    def test_cancel_confirmed_releases(self, service, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)
        service.set_status(booking.id, "cancelled", True)
        assert sold_in_db(tier) == 0

    def test_lost_race_to_rejection(self, service, persistence, tier):
        """A booking rejected by another operator after it was read cannot be approved."""
        booking = service.create_booking(booking_request(tier))
        stale = service.get_booking(booking.id)
        assert persistence.bookings.transition(
            booking.id, BookingStatus.PENDING, BookingStatus.REJECTED
        )

        assert not persistence.bookings.transition(
            stale.id, BookingStatus.PENDING, BookingStatus.CONFIRMED
        )
        with pytest.raises(InvalidTransitionError):
            service.set_status(booking.id, "confirmed", True)
        assert sold_in_db(tier) == 0

    def test_delete_confirmed_booking_releases(self, service, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)

        service.delete_booking(booking.id, acting_as_operator=True)

        assert not orm.Booking.objects.filter(pk=booking.id.value).exists()
        assert sold_in_db(tier) == 0

    def test_store_refuses_to_delete_confirmed(self, service, persistence, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)
        assert persistence.bookings.delete(booking.id) is False
        assert orm.Booking.objects.filter(pk=booking.id.value).exists()

    def test_summary_revenue_uses_locked_prices(self, service, persistence, clock):
        tier = TicketService(persistence).create_tier(
            name="Regular",
            price=Money(Decimal("1000")),
            discount_price=Money(Decimal("800")),
            discount_ends_at=DISCOUNT_ENDS_AT,
            capacity=10,
        )
        early = service.create_booking(booking_request(tier, quantity=2))
        late = service.create_booking(booking_request(tier))
        service.set_status(early.id, "confirmed", True)
        clock.now = DISCOUNT_ENDS_AT + timedelta(seconds=1)
        service.set_status(late.id, "confirmed", True)

        summary = service.booking_summary()

        assert summary.revenue == Money(Decimal("2600"))
        assert summary.count(BookingStatus.CONFIRMED) == 2
        assert persistence.bookings.confirmed_quantity_for_tier(tier.id) == 3

    def test_confirmation_carries_event(self, service, persistence, tier, notifier):
        EventService(persistence.events, EVENT_DEFAULTS).get_event()
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)
        _, _, event = notifier.sent[0]
        assert event.name == "NTS Rockstar Party"


@pytest.mark.django_db
class TestEventService:
    def test_event_created_from_defaults_once(self, persistence):
        service = EventService(persistence.events, EVENT_DEFAULTS)
        first = service.get_event()
        second = service.get_event()

        assert first.id == second.id
        assert orm.Event.objects.count() == 1
        assert first.location == "Nyanza TSS"
        assert first.starts_at.tzinfo is not None

    def test_existing_event_is_not_overwritten(self, persistence):
        persistence.events.save_event(
            name="Graduation Gala",
            description="",
            location="Kigali",
            starts_at=DISCOUNT_ENDS_AT,
            ends_at=DISCOUNT_ENDS_AT + timedelta(hours=4),
            payment_code="123",
            payment_instructions="",
        )
        assert EventService(persistence.events, EVENT_DEFAULTS).get_event().name == "Graduation Gala"


@pytest.mark.django_db
def test_persistence_handle_closes_cleanly_inside_test_transaction():
    with DjangoPersistence() as persistence:
        assert persistence.tiers.list_tiers() == []
    assert orm.TicketTier.objects.count() == 0


@pytest.mark.django_db
def test_booking_report_command(service, tier):
    booking = service.create_booking(booking_request(tier))
    service.set_status(booking.id, "confirmed", True)
    out = StringIO()

    call_command("booking_report", stdout=out)

    report = out.getvalue()
    assert "Bookings: 1" in report
    assert "confirmed: 1" in report
    assert "Regular: 1/1 sold, 0 left" in report


@pytest.mark.django_db
class TestTierMaintenance:
    def test_price_edit_leaves_confirmed_bookings_alone(self, service, persistence, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)

        TicketService(persistence).update_tier(
            tier.id, name="Regular", price=Money(Decimal("1500")), features=("Entry",)
        )

        row = orm.TicketTier.objects.get(pk=tier.id.value)
        assert row.price == Decimal("1500.00")
        assert row.discount_price is None
        assert row.sold == 1
        assert orm.Booking.objects.get(pk=booking.id.value).unit_price == Decimal("800.00")
        assert service.booking_summary().revenue == Money(Decimal("800"))

    def test_delete_tier_with_pending_booking_is_refused(self, service, persistence, tier):
        service.create_booking(booking_request(tier))
        with pytest.raises(TierInUseError):
            TicketService(persistence).delete_tier(tier.id)
        assert orm.TicketTier.objects.filter(pk=tier.id.value).exists()

    def test_delete_tier_with_sales_is_refused(self, persistence, tier):
        persistence.tiers.reserve(tier.id, 1)
        assert persistence.tiers.delete_tier(tier.id) is False

    def test_delete_unbooked_tier(self, persistence, tier):
        TicketService(persistence).delete_tier(tier.id)
        assert not orm.TicketTier.objects.filter(pk=tier.id.value).exists()

    def test_report_flags_ledger_drift(self, service, tier):
        booking = service.create_booking(booking_request(tier))
        service.set_status(booking.id, "confirmed", True)
        orm.TicketTier.objects.filter(pk=tier.id.value).update(sold=0)
        out = StringIO()

        call_command("booking_report", stdout=out)

        assert "confirmed bookings hold 1, ledger says 0" in out.getvalue()


@pytest.mark.django_db
def test_operator_updates_event(persistence):
    service = EventService(persistence.events, EVENT_DEFAULTS)
    service.get_event()

    updated = service.update_event(
        name="Graduation Gala",
        description="",
        location="Kigali",
        starts_at=DISCOUNT_ENDS_AT,
        ends_at=DISCOUNT_ENDS_AT + timedelta(hours=4),
        payment_code="123",
        payment_instructions="",
        acting_as_operator=True,
    )

    assert updated.name == "Graduation Gala"
    assert orm.Event.objects.get().location == "Kigali"


@pytest.mark.django_db
def test_non_operator_cannot_update_event(persistence):
    with pytest.raises(UnauthorizedError):
        EventService(persistence.events, EVENT_DEFAULTS).update_event(
            name="x",
            description="",
            location="y",
            starts_at=DISCOUNT_ENDS_AT,
            ends_at=DISCOUNT_ENDS_AT,
            payment_code="1",
            payment_instructions="",
            acting_as_operator=False,
        )
    assert not orm.Event.objects.exists()


@pytest.mark.django_db(transaction=True)
def test_concurrent_approvals_on_database_sell_last_ticket_once(notifier, clock):
    """Six operators approve six bookings for one remaining ticket at the same time."""
    with DjangoPersistence() as setup:
        tier = TicketService(setup).create_tier(
            name="Last seat", price=Money(Decimal("1000")), capacity=1
        )
        service = BookingService(setup, notifier, clock=clock)
        bookings = [service.create_booking(booking_request(tier)) for _ in range(6)]
    barrier = threading.Barrier(len(bookings))
    outcomes = []
    lock = threading.Lock()

    def approve(booking):
        barrier.wait()
        with DjangoPersistence() as own:
            try:
                result = BookingService(own, notifier, clock=clock).set_status(
                    booking.id, "confirmed", True
                )
            except Exception as exc:
                result = exc
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=approve, args=(b,)) for b in bookings]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(isinstance(o, SoldOutError) for o in outcomes) == 5
    assert [o.status for o in outcomes if not isinstance(o, Exception)] == [BookingStatus.CONFIRMED]
    assert sold_in_db(tier) == 1
    assert orm.Booking.objects.filter(status=orm.Booking.Status.CONFIRMED).count() == 1
    assert len(notifier.sent) == 1
