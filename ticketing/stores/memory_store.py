"""In-process implementation of the stores.

Every operation runs under one re-entrant lock, which gives each
conditional write the same all-or-nothing behaviour the database provides.
``atomic()`` snapshots state and restores it if the block raises.
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from ticketing.domain import (
    Availability,
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    Capacity,
    Event,
    EventId,
    Money,
    ReservationResult,
    TicketTier,
    TierId,
)
from ticketing.domain.errors import CapacityBelowSoldError, TierNotFoundError
from ticketing.stores.interfaces import BookingStore, EventStore, InventoryLedger, Persistence


class _State:
    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.tiers: dict[TierId, TicketTier] = {}
        self.bookings: dict[BookingId, Booking] = {}
        self.event: Event | None = None
        self.closed = False

    def check_open(self) -> None:
        if self.closed:
            raise RuntimeError("Persistence handle is closed")


class InMemoryInventoryLedger(InventoryLedger):
    def __init__(self, state: _State) -> None:
        self._state = state

    def get_tier(self, tier_id: TierId) -> TicketTier | None:
        with self._state.lock:
            self._state.check_open()
            return self._state.tiers.get(tier_id)

    def list_tiers(self, active_only: bool = True) -> list[TicketTier]:
        with self._state.lock:
            self._state.check_open()
            tiers = [t for t in self._state.tiers.values() if t.is_active or not active_only]
        return sorted(tiers, key=lambda t: (t.price.amount if t.price else Decimal("0"), t.name))

    def add_tier(
        self,
        *,
        name: str,
        price: Money,
        capacity: int,
        discount_price: Money | None = None,
        discount_ends_at: datetime | None = None,
        description: str = "",
        features: tuple[str, ...] = (),
        is_active: bool = True,
    ) -> TicketTier:
        tier = TicketTier(
            id=TierId(uuid.uuid4()),
            name=name,
            description=description,
            price=price,
            capacity=Capacity(capacity),
            sold=0,
            is_active=is_active,
            created_at=timezone.now(),
            discount_price=discount_price,
            discount_ends_at=discount_ends_at,
            features=tuple(features),
        )
        with self._state.lock:
            self._state.check_open()
            self._state.tiers[tier.id] = tier
        return tier

    def _require(self, tier_id: TierId) -> TicketTier:
        tier = self._state.tiers.get(tier_id)
        if tier is None:
            raise TierNotFoundError(str(tier_id))
        return tier

    def update_tier(
        self,
        tier_id: TierId,
        *,
        name: str,
        price: Money,
        discount_price: Money | None,
        discount_ends_at: datetime | None,
        description: str,
        features: tuple[str, ...],
        is_active: bool,
    ) -> TicketTier:
        with self._state.lock:
            self._state.check_open()
            tier = replace(
                self._require(tier_id),
                name=name,
                price=price,
                discount_price=discount_price,
                discount_ends_at=discount_ends_at,
                description=description,
                features=tuple(features),
                is_active=is_active,
            )
            self._state.tiers[tier_id] = tier
        return tier

    def delete_tier(self, tier_id: TierId) -> bool:
        with self._state.lock:
            self._state.check_open()
            tier = self._require(tier_id)
            booked = any(b.tier_id == tier_id for b in self._state.bookings.values())
            if tier.sold or booked:
                return False
            del self._state.tiers[tier_id]
        return True

    def reserve(self, tier_id: TierId, quantity: int) -> ReservationResult:
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        with self._state.lock:
            self._state.check_open()
            tier = self._require(tier_id)
            if tier.sold + quantity > tier.capacity.value:
                return ReservationResult.SOLD_OUT
            self._state.tiers[tier_id] = replace(tier, sold=tier.sold + quantity)
        return ReservationResult.OK

    def release(self, tier_id: TierId, quantity: int) -> ReservationResult:
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        with self._state.lock:
            self._state.check_open()
            tier = self._require(tier_id)
            self._state.tiers[tier_id] = replace(tier, sold=max(tier.sold - quantity, 0))
        return ReservationResult.OK

    def resize(self, tier_id: TierId, capacity: int) -> TicketTier:
        new_capacity = Capacity(capacity)
        with self._state.lock:
            self._state.check_open()
            tier = self._require(tier_id)
            if tier.sold > capacity:
                raise CapacityBelowSoldError(str(tier_id))
            tier = replace(tier, capacity=new_capacity)
            self._state.tiers[tier_id] = tier
        return tier

    def availability(self, tier_id: TierId) -> Availability:
        with self._state.lock:
            self._state.check_open()
            tier = self._require(tier_id)
        return Availability(capacity=tier.capacity.value, sold=tier.sold)


class InMemoryBookingStore(BookingStore):
    def __init__(self, state: _State) -> None:
        self._state = state

    def add(self, request: BookingRequest) -> Booking:
        with self._state.lock:
            self._state.check_open()
            tier = self._state.tiers.get(request.tier_id)
            if tier is None:
                raise TierNotFoundError(str(request.tier_id))
            now = timezone.now()
            booking = Booking(
                id=BookingId(uuid.uuid4()),
                buyer=request.buyer,
                tier_id=request.tier_id,
                tier_name=tier.name,
                quantity=request.quantity,
                payment_reference=request.payment_reference,
                payment_proof_url=request.payment_proof_url,
                status=BookingStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self._state.bookings[booking.id] = booking
        return booking

    def get(self, booking_id: BookingId) -> Booking | None:
        with self._state.lock:
            self._state.check_open()
            return self._state.bookings.get(booking_id)

    def _newest_first(self, bookings) -> list[Booking]:
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)

    def list_bookings(self, status: BookingStatus | None = None) -> list[Booking]:
        with self._state.lock:
            self._state.check_open()
            bookings = [
                b for b in self._state.bookings.values() if status is None or b.status is status
            ]
        return self._newest_first(bookings)

    def list_for_tier(self, tier_id: TierId) -> list[Booking]:
        with self._state.lock:
            self._state.check_open()
            bookings = [b for b in self._state.bookings.values() if b.tier_id == tier_id]
        return self._newest_first(bookings)

    def confirmed_quantity_for_tier(self, tier_id: TierId) -> int:
        return sum(
            b.quantity.value
            for b in self.list_for_tier(tier_id)
            if b.status is BookingStatus.CONFIRMED
        )

    def transition(
        self,
        booking_id: BookingId,
        source: BookingStatus,
        target: BookingStatus,
        unit_price: Money | None = None,
    ) -> bool:
        with self._state.lock:
            self._state.check_open()
            booking = self._state.bookings.get(booking_id)
            if booking is None or booking.status is not source:
                return False
            changes = {"status": target, "updated_at": timezone.now()}
            if unit_price is not None:
                changes["unit_price"] = unit_price
            self._state.bookings[booking_id] = replace(booking, **changes)
        return True

    def delete(self, booking_id: BookingId) -> bool:
        with self._state.lock:
            self._state.check_open()
            booking = self._state.bookings.get(booking_id)
            if booking is None or booking.status is BookingStatus.CONFIRMED:
                return False
            del self._state.bookings[booking_id]
        return True

    def summary(self) -> BookingSummary:
        bookings = self.list_bookings()
        counts: dict[BookingStatus, int] = {}
        revenue = Decimal("0")
        for booking in bookings:
            counts[booking.status] = counts.get(booking.status, 0) + 1
            if booking.status is BookingStatus.CONFIRMED and booking.total_amount:
                revenue += booking.total_amount.amount
        return BookingSummary(total=len(bookings), revenue=Money(revenue), by_status=counts)


class InMemoryEventStore(EventStore):
    def __init__(self, state: _State) -> None:
        self._state = state

    def get_event(self) -> Event | None:
        with self._state.lock:
            self._state.check_open()
            return self._state.event

    def save_event(
        self,
        *,
        name: str,
        description: str,
        location: str,
        starts_at: datetime,
        ends_at: datetime,
        payment_code: str,
        payment_instructions: str,
    ) -> Event:
        with self._state.lock:
            self._state.check_open()
            current = self._state.event
            self._state.event = Event(
                id=current.id if current else EventId(uuid.uuid4()),
                name=name,
                description=description,
                location=location,
                starts_at=starts_at,
                ends_at=ends_at,
                payment_code=payment_code,
                payment_instructions=payment_instructions,
                updated_at=timezone.now(),
            )
            return self._state.event


class InMemoryPersistence(Persistence):
    """Process-local persistence handle, safe to share between threads."""

    def __init__(self) -> None:
        self._state = _State()
        self.tiers = InMemoryInventoryLedger(self._state)
        self.bookings = InMemoryBookingStore(self._state)
        self.events = InMemoryEventStore(self._state)

    @contextmanager
    def atomic(self):
        with self._state.lock:
            self._state.check_open()
            tiers = dict(self._state.tiers)
            bookings = dict(self._state.bookings)
            event = self._state.event
            try:
                yield
            except BaseException:
                self._state.tiers = tiers
                self._state.bookings = bookings
                self._state.event = event
                raise

    def close(self) -> None:
        with self._state.lock:
            self._state.closed = True
