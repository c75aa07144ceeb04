"""Booking status transitions.

Only ``pending`` bookings move. ``confirmed``, ``rejected`` and ``cancelled``
are terminal, except that ``confirmed -> cancelled`` hands the reserved
units back to the tier.
"""

from dataclasses import dataclass
from enum import Enum

from ticketing.domain.errors import InvalidTransitionError
from ticketing.domain.models import BookingStatus


class InventoryEffect(Enum):
    """What a transition does to the tier's sold count."""

    NONE = "none"
    RESERVE = "reserve"
    RELEASE = "release"


@dataclass(frozen=True)
class Transition:
    source: BookingStatus
    target: BookingStatus
    effect: InventoryEffect


_TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): InventoryEffect.RESERVE,
    (BookingStatus.PENDING, BookingStatus.REJECTED): InventoryEffect.NONE,
    (BookingStatus.PENDING, BookingStatus.CANCELLED): InventoryEffect.NONE,
    (BookingStatus.CONFIRMED, BookingStatus.CANCELLED): InventoryEffect.RELEASE,
}


def is_noop(current: BookingStatus, target: BookingStatus) -> bool:
    """Approving an already confirmed booking succeeds without side effects."""
    return current is BookingStatus.CONFIRMED and target is BookingStatus.CONFIRMED


def plan_transition(current: BookingStatus, target: BookingStatus) -> Transition:
    """Return the transition from ``current`` to ``target``.

    Raises:
        InvalidTransitionError: If the move is not allowed.
    """
    try:
        effect = _TRANSITIONS[(current, target)]
    except KeyError:
        raise InvalidTransitionError(current.value, target.value) from None
    return Transition(source=current, target=target, effect=effect)
