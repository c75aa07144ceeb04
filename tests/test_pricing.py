"""Unit tests for tier pricing.

Run with: pytest tests/test_pricing.py -v
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from ticketing.domain import Capacity, Money, TicketTier, TierId
from ticketing.domain.errors import TierConfigurationError
from ticketing.domain.pricing import current_price

ENDS_AT = datetime(2025, 5, 17, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tier() -> TicketTier:
    return TicketTier(
        id=TierId(uuid4()),
        name="Regular",
        description="",
        price=Money(Decimal("1000")),
        discount_price=Money(Decimal("800")),
        discount_ends_at=ENDS_AT,
        capacity=Capacity(100),
        sold=0,
        is_active=True,
        created_at=ENDS_AT - timedelta(days=30),
    )


class TestCurrentPrice:
    """Tests for current_price."""

    def test_discount_applies_before_end(self, tier):
        """One second before the end the discount price applies."""
        assert current_price(tier, ENDS_AT - timedelta(seconds=1)) == Money(Decimal("800"))

    def test_standard_price_at_exact_end(self, tier):
        """The discount window is half-open: the end instant pays full price."""
        assert current_price(tier, ENDS_AT) == Money(Decimal("1000"))

    def test_standard_price_after_end(self, tier):
        assert current_price(tier, ENDS_AT + timedelta(seconds=1)) == Money(Decimal("1000"))

    def test_end_compared_across_timezones(self, tier):
        """An aware timestamp in another zone is compared by instant."""
        kigali = timezone(timedelta(hours=2))
        just_before = datetime(2025, 5, 17, 13, 59, 59, tzinfo=kigali)
        assert current_price(tier, just_before) == Money(Decimal("800"))

    def test_no_discount_price_means_standard_price(self, tier):
        tier = replace(tier, discount_price=None)
        assert current_price(tier, ENDS_AT - timedelta(days=1)) == Money(Decimal("1000"))

    def test_no_discount_end_means_standard_price(self, tier):
        tier = replace(tier, discount_ends_at=None)
        assert current_price(tier, ENDS_AT - timedelta(days=1)) == Money(Decimal("1000"))

    def test_missing_price_is_configuration_error(self, tier):
        with pytest.raises(TierConfigurationError):
            current_price(replace(tier, price=None), ENDS_AT)

    def test_discount_above_price_is_configuration_error(self, tier):
        tier = replace(tier, discount_price=Money(Decimal("1200")))
        with pytest.raises(TierConfigurationError):
            current_price(tier, ENDS_AT - timedelta(days=1))

    def test_naive_timestamp_is_rejected(self, tier):
        with pytest.raises(TierConfigurationError):
            current_price(tier, datetime(2025, 5, 17, 11, 0))
