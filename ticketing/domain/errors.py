"""Domain error codes for the ticketing module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ID = "INVALID_ID"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    TIER_NOT_FOUND = "TIER_NOT_FOUND"
    TIER_MISCONFIGURED = "TIER_MISCONFIGURED"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    SOLD_OUT = "SOLD_OUT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CAPACITY_BELOW_SOLD = "CAPACITY_BELOW_SOLD"
    TIER_IN_USE = "TIER_IN_USE"
    UNAUTHORIZED = "UNAUTHORIZED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {kind} ID format",
        )


class BookingValidationError(DomainError):
    """Raised when buyer or booking input is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)


class TierNotFoundError(DomainError):
    """Raised when a ticket tier does not exist."""

    def __init__(self, tier_id: str) -> None:
        super().__init__(
            code=ErrorCode.TIER_NOT_FOUND,
            message="Ticket tier not found",
        )
        object.__setattr__(self, "tier_id", tier_id)


class TierConfigurationError(DomainError):
    """Raised when a tier's price fields cannot produce a price."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.TIER_MISCONFIGURED, message=message)


class BookingNotFoundError(DomainError):
    """Raised when a booking does not exist."""

    def __init__(self, booking_id: str) -> None:
        super().__init__(
            code=ErrorCode.BOOKING_NOT_FOUND,
            message="Booking not found",
        )
        object.__setattr__(self, "booking_id", booking_id)


class SoldOutError(DomainError):
    """Raised when a tier cannot cover the requested quantity."""

    def __init__(self, tier_id: str) -> None:
        super().__init__(
            code=ErrorCode.SOLD_OUT,
            message="Not enough tickets left for this tier",
        )
        object.__setattr__(self, "tier_id", tier_id)


class InvalidTransitionError(DomainError):
    """Raised when a booking cannot move to the requested status."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Cannot move booking from {current} to {target}",
        )
        object.__setattr__(self, "current", current)
        object.__setattr__(self, "target", target)


class CapacityBelowSoldError(DomainError):
    """Raised when a tier would be resized below what it has already sold."""

    def __init__(self, tier_id: str) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_BELOW_SOLD,
            message="Capacity cannot be lower than tickets already sold",
        )
        object.__setattr__(self, "tier_id", tier_id)


class TierInUseError(DomainError):
    """Raised when a tier with sales or bookings is deleted."""

    def __init__(self, tier_id: str) -> None:
        super().__init__(
            code=ErrorCode.TIER_IN_USE,
            message="Ticket tier has bookings and cannot be deleted",
        )
        object.__setattr__(self, "tier_id", tier_id)


class UnauthorizedError(DomainError):
    """Raised when a non-operator attempts an operator action."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.UNAUTHORIZED,
            message="Operator privileges required",
        )
