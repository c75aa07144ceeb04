"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in ticketing/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ticketing.domain.value_objects import (
    BookingId,
    Buyer,
    Capacity,
    EventId,
    Money,
    Quantity,
    TierId,
)


class BookingStatus(str, Enum):
    """Where a booking sits in its lifecycle."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: str) -> "BookingStatus":
        """Parse a status name, accepting the legacy ``approved`` spelling."""
        normalized = value.strip().lower()
        if normalized == "approved":
            return cls.CONFIRMED
        return cls(normalized)


class ReservationResult(Enum):
    """Outcome of an inventory reservation."""

    OK = "ok"
    SOLD_OUT = "sold_out"


@dataclass(frozen=True)
class Event:
    """Domain representation of the Event."""

    id: EventId
    name: str
    description: str
    location: str
    starts_at: datetime
    ends_at: datetime
    payment_code: str
    payment_instructions: str
    updated_at: datetime


@dataclass(frozen=True)
class TicketTier:
    """Domain representation of a TicketTier."""

    id: TierId
    name: str
    description: str
    price: Money | None
    capacity: Capacity
    sold: int
    is_active: bool
    created_at: datetime
    discount_price: Money | None = None
    discount_ends_at: datetime | None = None
    features: tuple[str, ...] = ()

    @property
    def remaining(self) -> int:
        return max(self.capacity.value - self.sold, 0)

    @property
    def is_sold_out(self) -> bool:
        return self.remaining == 0


@dataclass(frozen=True)
class Availability:
    """Capacity snapshot of a single tier."""

    capacity: int
    sold: int

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.sold, 0)


@dataclass(frozen=True)
class BookingRequest:
    """Validated input for a new booking."""

    buyer: Buyer
    tier_id: TierId
    quantity: Quantity
    payment_reference: str
    payment_proof_url: str

    def __post_init__(self) -> None:
        reference = self.payment_reference.strip()
        proof_url = self.payment_proof_url.strip()
        if not reference:
            raise ValueError("Payment reference is required")
        if not proof_url:
            raise ValueError("Payment proof is required")
        object.__setattr__(self, "payment_reference", reference)
        object.__setattr__(self, "payment_proof_url", proof_url)


@dataclass(frozen=True)
class Booking:
    """Domain representation of a Booking."""

    id: BookingId
    buyer: Buyer
    tier_id: TierId
    tier_name: str
    quantity: Quantity
    payment_reference: str
    payment_proof_url: str
    status: BookingStatus
    created_at: datetime
    updated_at: datetime
    unit_price: Money | None = None

    @property
    def total_amount(self) -> Money | None:
        if self.unit_price is None:
            return None
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class BookingSummary:
    """Aggregate figures across all bookings."""

    total: int = 0
    revenue: Money = field(default_factory=lambda: Money(0))
    by_status: dict[BookingStatus, int] = field(default_factory=dict)

    def count(self, status: BookingStatus) -> int:
        return self.by_status.get(status, 0)
