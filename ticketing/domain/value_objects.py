"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class EventId:
    """Unique identifier for the Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TierId:
    """Unique identifier for a TicketTier."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class BookingId:
    """Unique identifier for a Booking."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    def __mul__(self, quantity: int) -> "Money":
        return Money(self.amount * quantity)

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Capacity:
    """Positive integer representing how many units a tier can sell."""

    value: int

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise ValueError("Capacity must be positive")


@dataclass(frozen=True)
class Quantity:
    """Number of units requested by a single booking."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Quantity must be an integer")
        if self.value <= 0:
            raise ValueError("Quantity must be positive")


@dataclass(frozen=True)
class Buyer:
    """Contact details captured from the booking form."""

    full_name: str
    email: str
    phone_number: str
    student_level: str = ""
    trade: str = ""

    def __post_init__(self) -> None:
        full_name = self.full_name.strip()
        email = self.email.strip().lower()
        phone_number = self.phone_number.strip()
        if not full_name:
            raise ValueError("Full name is required")
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValueError("A valid email address is required")
        if not phone_number:
            raise ValueError("Phone number is required")
        object.__setattr__(self, "full_name", full_name)
        object.__setattr__(self, "email", email)
        object.__setattr__(self, "phone_number", phone_number)
        object.__setattr__(self, "student_level", self.student_level.strip())
        object.__setattr__(self, "trade", self.trade.strip())
