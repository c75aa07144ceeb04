from ticketing.domain.models import (
    Availability,
    Booking,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    Event,
    ReservationResult,
    TicketTier,
)
from ticketing.domain.value_objects import (
    BookingId,
    Buyer,
    Capacity,
    EventId,
    Money,
    Quantity,
    TierId,
)

__all__ = [
    "Availability",
    "Booking",
    "BookingRequest",
    "BookingStatus",
    "BookingSummary",
    "Event",
    "ReservationResult",
    "TicketTier",
    "BookingId",
    "Buyer",
    "Capacity",
    "EventId",
    "Money",
    "Quantity",
    "TierId",
]
