"""Ticket tier service: prices, availability and tier setup."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from ticketing.domain import Availability, Money, TicketTier, TierId
from ticketing.domain.errors import TierConfigurationError, TierInUseError, TierNotFoundError
from ticketing.domain.pricing import current_price
from ticketing.services.ids import parse_id
from ticketing.stores.interfaces import Persistence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierQuote:
    """A tier together with what it costs and how many are left right now."""

    tier: TicketTier
    price: Money
    availability: Availability

    @property
    def discount_active(self) -> bool:
        return self.tier.price is not None and self.price.amount < self.tier.price.amount


class TicketService:
    """Service for ticket tier operations."""

    def __init__(
        self,
        persistence: Persistence,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._persistence = persistence
        self._clock = clock

    def _require_tier(self, tier_id: str | TierId) -> TicketTier:
        key = parse_id(TierId, tier_id, "ticket tier")
        tier = self._persistence.tiers.get_tier(key)
        if tier is None:
            logger.error("Ticket tier %s not found", key)
            raise TierNotFoundError(str(key))
        return tier

    def _quote(self, tier: TicketTier, now: datetime) -> TierQuote:
        return TierQuote(
            tier=tier,
            price=current_price(tier, now),
            availability=Availability(capacity=tier.capacity.value, sold=tier.sold),
        )

    def list_tiers(self, active_only: bool = True) -> list[TierQuote]:
        """Return tiers with their current price, cheapest first."""
        now = self._clock()
        return [self._quote(tier, now) for tier in self._persistence.tiers.list_tiers(active_only)]

    def get_tier(self, tier_id: str | TierId) -> TierQuote:
        """Return one tier with its current price.

        Raises:
            InvalidIdError: If the tier_id is not a valid UUID.
            TierNotFoundError: If the tier does not exist.
        """
        return self._quote(self._require_tier(tier_id), self._clock())

    def current_price(self, tier_id: str | TierId) -> Money:
        """Return the unit price a booking approved now would be charged."""
        return current_price(self._require_tier(tier_id), self._clock())

    def tier_availability(self, tier_id: str | TierId) -> Availability:
        key = parse_id(TierId, tier_id, "ticket tier")
        try:
            return self._persistence.tiers.availability(key)
        except TierNotFoundError:
            logger.error("Ticket tier %s not found", key)
            raise

    def _check_pricing(
        self,
        name: str,
        price: Money,
        discount_price: Money | None,
        discount_ends_at: datetime | None,
    ) -> None:
        if not name.strip():
            raise TierConfigurationError("Tier name is required")
        if discount_price is not None and discount_price.amount > price.amount:
            raise TierConfigurationError("Discount price cannot exceed the standard price")
        if discount_ends_at is not None and discount_ends_at.tzinfo is None:
            raise TierConfigurationError("Discount end time must include a timezone")

    def create_tier(
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
        """Create a tier with nothing sold.

        Raises:
            TierConfigurationError: If the name is blank, capacity is not
                positive, or the discount is above the standard price.
        """
        self._check_pricing(name, price, discount_price, discount_ends_at)
        if capacity <= 0:
            raise TierConfigurationError("Capacity must be positive")
        tier = self._persistence.tiers.add_tier(
            name=name.strip(),
            price=price,
            capacity=capacity,
            discount_price=discount_price,
            discount_ends_at=discount_ends_at,
            description=description,
            features=features,
            is_active=is_active,
        )
        logger.info("Created ticket tier %s (%s, capacity %d)", tier.id, tier.name, capacity)
        return tier

    def resize_tier(self, tier_id: str | TierId, capacity: int) -> TicketTier:
        """Change a tier's capacity without dropping below what is sold.

        Raises:
            TierConfigurationError: If capacity is not positive.
            CapacityBelowSoldError: If more units are already sold.
        """
        key = parse_id(TierId, tier_id, "ticket tier")
        if capacity <= 0:
            raise TierConfigurationError("Capacity must be positive")
        tier = self._persistence.tiers.resize(key, capacity)
        logger.info("Resized ticket tier %s to capacity %d", key, capacity)
        return tier

    def update_tier(
        self,
        tier_id: str | TierId,
        *,
        name: str,
        price: Money,
        discount_price: Money | None = None,
        discount_ends_at: datetime | None = None,
        description: str = "",
        features: tuple[str, ...] = (),
        is_active: bool = True,
    ) -> TicketTier:
        """Edit a tier's name, prices and details.

        Bookings confirmed earlier keep the unit price they were approved at.

        Raises:
            InvalidIdError: If the tier_id is not a valid UUID.
            TierConfigurationError: If the name is blank or the discount is
                above the standard price.
            TierNotFoundError: If the tier does not exist.
        """
        key = parse_id(TierId, tier_id, "ticket tier")
        self._check_pricing(name, price, discount_price, discount_ends_at)
        try:
            tier = self._persistence.tiers.update_tier(
                key,
                name=name.strip(),
                price=price,
                discount_price=discount_price,
                discount_ends_at=discount_ends_at,
                description=description,
                features=features,
                is_active=is_active,
            )
        except TierNotFoundError:
            logger.error("Ticket tier %s not found", key)
            raise
        logger.info("Updated ticket tier %s (price %s)", key, price)
        return tier

    def delete_tier(self, tier_id: str | TierId) -> None:
        """Delete a tier that nobody has booked.

        Raises:
            TierNotFoundError: If the tier does not exist.
            TierInUseError: If it has sold units or any booking.
        """
        key = parse_id(TierId, tier_id, "ticket tier")
        try:
            deleted = self._persistence.tiers.delete_tier(key)
        except TierNotFoundError:
            logger.error("Ticket tier %s not found", key)
            raise
        if not deleted:
            logger.warning("Refused to delete ticket tier %s with bookings", key)
            raise TierInUseError(str(key))
        logger.info("Deleted ticket tier %s", key)
