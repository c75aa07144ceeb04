"""Booking service - the booking lifecycle.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

A booking is submitted as ``pending`` without touching inventory. Approval
captures the unit price and reserves units in the same transaction as the
status change; cancelling a confirmed booking gives them back. Status and
sold-count changes are conditional writes, so concurrent operators cannot
double-reserve.
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from django.utils import timezone

from ticketing.domain import (
    Booking,
    BookingId,
    BookingRequest,
    BookingStatus,
    BookingSummary,
    Buyer,
    Quantity,
    ReservationResult,
    TierId,
)
from ticketing.domain.errors import (
    BookingNotFoundError,
    BookingValidationError,
    InvalidTransitionError,
    SoldOutError,
    TierNotFoundError,
    UnauthorizedError,
)
from ticketing.domain.lifecycle import InventoryEffect, Transition, is_noop, plan_transition
from ticketing.domain.pricing import current_price
from ticketing.services.ids import parse_id
from ticketing.services.notifications import Notifier
from ticketing.stores.interfaces import Persistence

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = (
    "full_name",
    "email",
    "phone_number",
    "tier_id",
    "payment_reference",
    "payment_proof_url",
)


def build_booking_request(data: Mapping[str, Any]) -> BookingRequest:
    """Turn already shape-checked input into a ``BookingRequest``.

    Raises:
        InvalidIdError: If the tier id is not a valid UUID.
        BookingValidationError: If any field breaks a domain rule.
    """
    missing = [key for key in _REQUIRED_FIELDS if key not in data]
    if missing:
        raise BookingValidationError(f"Missing required fields: {', '.join(missing)}")
    tier_id = parse_id(TierId, data["tier_id"], "ticket tier")
    try:
        return BookingRequest(
            buyer=Buyer(
                full_name=data["full_name"],
                email=data["email"],
                phone_number=data["phone_number"],
                student_level=data.get("student_level", ""),
                trade=data.get("trade", ""),
            ),
            tier_id=tier_id,
            quantity=Quantity(data.get("quantity", 1)),
            payment_reference=data["payment_reference"],
            payment_proof_url=data["payment_proof_url"],
        )
    except ValueError as exc:
        raise BookingValidationError(str(exc)) from exc


class BookingService:
    """Service for booking submission and operator decisions."""

    def __init__(
        self,
        persistence: Persistence,
        notifier: Notifier,
        clock: Callable[[], datetime] = timezone.now,
        max_quantity: int = 10,
    ) -> None:
        self._persistence = persistence
        self._notifier = notifier
        self._clock = clock
        self._max_quantity = max_quantity

    def create_booking(self, request: BookingRequest) -> Booking:
        """Record a new pending booking. Inventory is not touched.

        Raises:
            BookingValidationError: If the quantity is above the per-booking
                limit or the tier is not on sale.
            TierNotFoundError: If the tier does not exist.
        """
        if request.quantity.value > self._max_quantity:
            raise BookingValidationError(
                f"At most {self._max_quantity} tickets can be booked at once"
            )
        tier = self._persistence.tiers.get_tier(request.tier_id)
        if tier is None:
            logger.error("Booking submitted for unknown ticket tier %s", request.tier_id)
            raise TierNotFoundError(str(request.tier_id))
        if not tier.is_active:
            raise BookingValidationError("This ticket tier is not on sale")
        booking = self._persistence.bookings.add(request)
        logger.info(
            "Booking %s submitted for tier %s (quantity %d)",
            booking.id,
            tier.id,
            booking.quantity.value,
        )
        return booking

    def get_booking(self, booking_id: str | BookingId) -> Booking:
        """Return a booking by ID.

        Raises:
            InvalidIdError: If the booking_id is not a valid UUID.
            BookingNotFoundError: If the booking does not exist.
        """
        key = parse_id(BookingId, booking_id, "booking")
        booking = self._persistence.bookings.get(key)
        if booking is None:
            logger.error("Booking %s not found", key)
            raise BookingNotFoundError(str(key))
        return booking

    def list_bookings(self, status: str | BookingStatus | None = None) -> list[Booking]:
        """Return bookings newest first, optionally only those in one status."""
        if status is not None and not isinstance(status, BookingStatus):
            status = self._parse_status(status)
        return self._persistence.bookings.list_bookings(status)

    def booking_summary(self) -> BookingSummary:
        return self._persistence.bookings.summary()

    def bookings_for_tier(self, tier_id: str | TierId) -> list[Booking]:
        """Return a tier's bookings newest first."""
        return self._persistence.bookings.list_for_tier(parse_id(TierId, tier_id, "ticket tier"))

    def confirmed_quantity(self, tier_id: str | TierId) -> int:
        """Return the units held by a tier's confirmed bookings.

        This is recomputed from bookings, so it can be checked against the
        ledger's ``sold`` figure.
        """
        key = parse_id(TierId, tier_id, "ticket tier")
        return self._persistence.bookings.confirmed_quantity_for_tier(key)

    def set_status(
        self,
        booking_id: str | BookingId,
        target: str | BookingStatus,
        acting_as_operator: bool,
    ) -> Booking:
        """Move a booking to ``target``.

        Approving an already confirmed booking returns it unchanged.

        Raises:
            UnauthorizedError: If the caller is not an operator.
            InvalidIdError: If the booking_id is not a valid UUID.
            BookingValidationError: If ``target`` is not a known status.
            BookingNotFoundError: If the booking does not exist.
            InvalidTransitionError: If the move is not allowed.
            SoldOutError: If approval needs more units than are left.
        """
        if not acting_as_operator:
            raise UnauthorizedError()
        if not isinstance(target, BookingStatus):
            target = self._parse_status(target)
        booking = self.get_booking(booking_id)

        if is_noop(booking.status, target):
            logger.info("Booking %s is already confirmed", booking.id)
            return booking
        try:
            transition = plan_transition(booking.status, target)
        except InvalidTransitionError:
            logger.warning(
                "Rejected transition of booking %s from %s to %s",
                booking.id,
                booking.status.value,
                target.value,
            )
            raise

        updated = self._apply(booking, transition)
        if updated is None:
            return self._after_lost_race(booking.id, target)

        logger.info(
            "Booking %s moved from %s to %s",
            updated.id,
            transition.source.value,
            transition.target.value,
        )
        self._notify(updated)
        return updated

    def delete_booking(self, booking_id: str | BookingId, acting_as_operator: bool) -> None:
        """Delete a booking, giving back its units first if it was confirmed.

        Raises:
            UnauthorizedError: If the caller is not an operator.
            BookingNotFoundError: If the booking does not exist.
            InvalidTransitionError: If it was confirmed while being deleted.
        """
        if not acting_as_operator:
            raise UnauthorizedError()
        booking = self.get_booking(booking_id)
        bookings = self._persistence.bookings
        with self._persistence.atomic():
            if bookings.transition(booking.id, BookingStatus.CONFIRMED, BookingStatus.CANCELLED):
                self._persistence.tiers.release(booking.tier_id, booking.quantity.value)
                logger.info("Released %d units of tier %s", booking.quantity.value, booking.tier_id)
            if not bookings.delete(booking.id):
                # Confirmed by another request after the cancel attempt.
                current = self.get_booking(booking.id)
                raise InvalidTransitionError(current.status.value, "deleted")
        logger.info("Booking %s deleted", booking.id)

    def _parse_status(self, value: str) -> BookingStatus:
        try:
            return BookingStatus.parse(value)
        except ValueError:
            raise BookingValidationError(f"Unknown booking status {value!r}") from None

    def _apply(self, booking: Booking, transition: Transition) -> Booking | None:
        """Perform ``transition``; return None if another request moved the booking first."""
        bookings = self._persistence.bookings
        tiers = self._persistence.tiers
        quantity = booking.quantity.value

        unit_price = None
        if transition.effect is InventoryEffect.RESERVE:
            tier = tiers.get_tier(booking.tier_id)
            if tier is None:
                logger.error("Booking %s refers to missing tier %s", booking.id, booking.tier_id)
                raise TierNotFoundError(str(booking.tier_id))
            unit_price = current_price(tier, self._clock())

        try:
            with self._persistence.atomic():
                if not bookings.transition(
                    booking.id, transition.source, transition.target, unit_price=unit_price
                ):
                    return None
                if transition.effect is InventoryEffect.RESERVE:
                    if tiers.reserve(booking.tier_id, quantity) is ReservationResult.SOLD_OUT:
                        raise SoldOutError(str(booking.tier_id))
                elif transition.effect is InventoryEffect.RELEASE:
                    tiers.release(booking.tier_id, quantity)
        except SoldOutError:
            logger.info(
                "Booking %s stays pending: tier %s cannot cover %d more",
                booking.id,
                booking.tier_id,
                quantity,
            )
            raise
        except TierNotFoundError:
            logger.error("Booking %s refers to missing tier %s", booking.id, booking.tier_id)
            raise
        return self.get_booking(booking.id)

    def _after_lost_race(self, booking_id: BookingId, target: BookingStatus) -> Booking:
        current = self.get_booking(booking_id)
        if current.status is target and is_noop(current.status, target):
            logger.info("Booking %s was confirmed by a concurrent request", booking_id)
            return current
        logger.warning(
            "Booking %s changed to %s before it could move to %s",
            booking_id,
            current.status.value,
            target.value,
        )
        raise InvalidTransitionError(current.status.value, target.value)

    def _notify(self, booking: Booking) -> None:
        if booking.status is BookingStatus.CONFIRMED:
            send = self._notifier.notify_confirmed
        elif booking.status is BookingStatus.REJECTED:
            send = self._notifier.notify_rejected
        else:
            return
        try:
            send(booking, self._persistence.events.get_event())
        except Exception:
            logger.exception("Notification for booking %s failed", booking.id)
