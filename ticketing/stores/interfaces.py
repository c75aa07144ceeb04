"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutation of a
tier's sold count or a booking's status is a single conditional write; no
store method reads a value and writes it back in a separate step.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from ticketing.domain import (
    Availability,
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    Event,
    Money,
    ReservationResult,
    TicketTier,
    TierId,
)


class InventoryLedger(ABC):
    """Authoritative sold counts per ticket tier."""

    @abstractmethod
    def get_tier(self, tier_id: TierId) -> TicketTier | None:
        """Return a tier by ID, or None if not found."""
        ...

    @abstractmethod
    def list_tiers(self, active_only: bool = True) -> list[TicketTier]:
        """Return tiers ordered by price ascending."""
        ...

    @abstractmethod
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
        """Persist a new tier with nothing sold."""
        ...

    @abstractmethod
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
        """Overwrite a tier's descriptive and pricing fields.

        Capacity and sold are left alone, and so is the unit price already
        locked on confirmed bookings.

        Raises:
            TierNotFoundError: If the tier does not exist.
        """
        ...

    @abstractmethod
    def delete_tier(self, tier_id: TierId) -> bool:
        """Delete a tier that has nothing sold and no bookings.

        Returns True if a row was removed.

        Raises:
            TierNotFoundError: If the tier does not exist.
        """
        ...

    @abstractmethod
    def reserve(self, tier_id: TierId, quantity: int) -> ReservationResult:
        """Add ``quantity`` to sold if it still fits within capacity.

        Raises:
            TierNotFoundError: If the tier does not exist.
        """
        ...

    @abstractmethod
    def release(self, tier_id: TierId, quantity: int) -> ReservationResult:
        """Subtract ``quantity`` from sold, never going below zero.

        Raises:
            TierNotFoundError: If the tier does not exist.
        """
        ...

    @abstractmethod
    def resize(self, tier_id: TierId, capacity: int) -> TicketTier:
        """Change capacity as long as it stays at or above sold.

        Raises:
            TierNotFoundError: If the tier does not exist.
            CapacityBelowSoldError: If more units are already sold.
        """
        ...

    @abstractmethod
    def availability(self, tier_id: TierId) -> Availability:
        """Return capacity and sold for a tier.

        Raises:
            TierNotFoundError: If the tier does not exist.
        """
        ...


class BookingStore(ABC):
    """Interface for booking persistence operations."""

    @abstractmethod
    def add(self, request: BookingRequest) -> Booking:
        """Persist a new ``pending`` booking."""
        ...

    @abstractmethod
    def get(self, booking_id: BookingId) -> Booking | None:
        """Return a booking by ID, or None if not found."""
        ...

    @abstractmethod
    def list_bookings(self, status: BookingStatus | None = None) -> list[Booking]:
        """Return bookings ordered by created_at descending."""
        ...

    @abstractmethod
    def list_for_tier(self, tier_id: TierId) -> list[Booking]:
        """Return bookings for one tier ordered by created_at descending."""
        ...

    @abstractmethod
    def confirmed_quantity_for_tier(self, tier_id: TierId) -> int:
        """Return the number of units held by confirmed bookings of a tier."""
        ...

    @abstractmethod
    def transition(
        self,
        booking_id: BookingId,
        source: BookingStatus,
        target: BookingStatus,
        unit_price: Money | None = None,
    ) -> bool:
        """Move a booking from ``source`` to ``target``.

        The write only happens if the booking is still in ``source``.
        Returns True if this call performed the change.
        """
        ...

    @abstractmethod
    def delete(self, booking_id: BookingId) -> bool:
        """Delete a booking unless it is confirmed.

        Confirmed bookings hold inventory and must be cancelled first.
        Returns True if a row was removed.
        """
        ...

    @abstractmethod
    def summary(self) -> BookingSummary:
        """Return counts per status and revenue from confirmed bookings."""
        ...


class EventStore(ABC):
    """Interface for the event details."""

    @abstractmethod
    def get_event(self) -> Event | None:
        """Return the event, or None if it has not been set up."""
        ...

    @abstractmethod
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
        """Create the event or overwrite the existing one."""
        ...


class Persistence(ABC):
    """Explicitly constructed handle over all stores.

    Open it once, pass it to services, and close it when done. ``atomic()``
    scopes several conditional writes into one all-or-nothing unit.
    """

    tiers: InventoryLedger
    bookings: BookingStore
    events: EventStore

    def __enter__(self) -> "Persistence":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager that commits on exit or rolls back on error."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release any resources held by the handle."""
        ...
