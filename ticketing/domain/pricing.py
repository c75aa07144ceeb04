"""Unit price selection for a ticket tier."""

from datetime import datetime

from ticketing.domain.errors import TierConfigurationError
from ticketing.domain.models import TicketTier
from ticketing.domain.value_objects import Money


def current_price(tier: TicketTier, now: datetime) -> Money:
    """Return the unit price that applies to ``tier`` at ``now``.

    The discount window is half-open: the discount price applies strictly
    before ``discount_ends_at`` and the standard price applies from that
    instant on. A tier without both a discount price and an end time is
    always sold at the standard price.

    Raises:
        TierConfigurationError: If the tier has no standard price, its
            discount exceeds the standard price, or ``now`` is naive.
    """
    if tier.price is None:
        raise TierConfigurationError(f"Tier {tier.name!r} has no price")
    if now.tzinfo is None:
        raise TierConfigurationError("Pricing requires a timezone-aware timestamp")
    if tier.discount_price is None or tier.discount_ends_at is None:
        return tier.price
    if tier.discount_price.amount > tier.price.amount:
        raise TierConfigurationError(
            f"Tier {tier.name!r} discount price exceeds its standard price"
        )
    if now < tier.discount_ends_at:
        return tier.discount_price
    return tier.price
