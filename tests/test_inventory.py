"""Tests for the inventory ledger.

The Django ledger is checked against the real schema; the in-memory ledger
is also driven from many threads at once.
Run with: pytest tests/test_inventory.py -v
"""

import threading
import uuid
from decimal import Decimal

import pytest

from ticketing import models as orm
from ticketing.domain import Money, ReservationResult, TierId
from ticketing.domain.errors import CapacityBelowSoldError, TierNotFoundError
from ticketing.stores.django_store import DjangoInventoryLedger
from ticketing.stores.memory_store import InMemoryPersistence


@pytest.fixture
def ledger() -> DjangoInventoryLedger:
    return DjangoInventoryLedger()


@pytest.fixture
def tier(ledger):
    return ledger.add_tier(name="VIP", price=Money(Decimal("5000")), capacity=2)


@pytest.mark.django_db
class TestDjangoInventoryLedger:
    """Tests for DjangoInventoryLedger."""

    def test_reserve_increments_sold(self, ledger, tier):
        assert ledger.reserve(tier.id, 1) is ReservationResult.OK
        assert ledger.availability(tier.id).sold == 1

    def test_reserve_up_to_capacity(self, ledger, tier):
        assert ledger.reserve(tier.id, 2) is ReservationResult.OK
        assert ledger.availability(tier.id).remaining == 0

    def test_reserve_beyond_capacity_is_sold_out(self, ledger, tier):
        """A reservation that does not fit leaves sold untouched."""
        ledger.reserve(tier.id, 1)
        assert ledger.reserve(tier.id, 2) is ReservationResult.SOLD_OUT
        assert orm.TicketTier.objects.get(pk=tier.id.value).sold == 1

    def test_reserve_works_from_stale_reads(self, ledger, tier):
        """Two callers that both saw one ticket left cannot both get it."""
        ledger.reserve(tier.id, 1)
        seen_by_first = ledger.availability(tier.id)
        seen_by_second = ledger.availability(tier.id)
        assert seen_by_first.remaining == seen_by_second.remaining == 1

        results = [ledger.reserve(tier.id, 1), ledger.reserve(tier.id, 1)]

        assert results == [ReservationResult.OK, ReservationResult.SOLD_OUT]
        assert ledger.availability(tier.id).sold == 2

    def test_reserve_unknown_tier_raises(self, ledger):
        with pytest.raises(TierNotFoundError):
            ledger.reserve(TierId(uuid.uuid4()), 1)

    def test_reserve_rejects_non_positive_quantity(self, ledger, tier):
        with pytest.raises(ValueError):
            ledger.reserve(tier.id, 0)

    def test_release_round_trip(self, ledger, tier):
        """Reserve then release returns the ledger to where it started."""
        before = ledger.availability(tier.id)
        ledger.reserve(tier.id, 2)
        ledger.release(tier.id, 2)
        assert ledger.availability(tier.id) == before

    def test_release_floors_at_zero(self, ledger, tier):
        """A double release cannot push sold below zero."""
        ledger.reserve(tier.id, 1)
        ledger.release(tier.id, 1)
        assert ledger.release(tier.id, 1) is ReservationResult.OK
        assert ledger.availability(tier.id).sold == 0

    def test_release_unknown_tier_raises(self, ledger):
        with pytest.raises(TierNotFoundError):
            ledger.release(TierId(uuid.uuid4()), 1)

    def test_resize_above_sold(self, ledger, tier):
        ledger.reserve(tier.id, 2)
        assert ledger.resize(tier.id, 5).capacity.value == 5
        assert ledger.availability(tier.id).remaining == 3

    def test_resize_below_sold_is_refused(self, ledger, tier):
        ledger.reserve(tier.id, 2)
        with pytest.raises(CapacityBelowSoldError):
            ledger.resize(tier.id, 1)
        assert ledger.availability(tier.id).capacity == 2

    def test_list_tiers_hides_inactive(self, ledger, tier):
        ledger.add_tier(name="Staff", price=Money(Decimal("0")), capacity=5, is_active=False)
        assert [t.name for t in ledger.list_tiers()] == ["VIP"]
        assert len(ledger.list_tiers(active_only=False)) == 2


class TestInMemoryInventoryLedger:
    """Tests for the in-memory ledger under concurrent use."""

    def test_no_overselling_under_concurrent_reserves(self):
        """Twenty threads racing for one ticket: exactly one wins."""
        persistence = InMemoryPersistence()
        tier = persistence.tiers.add_tier(name="Last seat", price=Money(Decimal("1000")), capacity=1)
        barrier = threading.Barrier(20)
        results = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            result = persistence.tiers.reserve(tier.id, 1)
            with lock:
                results.append(result)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(ReservationResult.OK) == 1
        assert results.count(ReservationResult.SOLD_OUT) == 19
        assert persistence.tiers.availability(tier.id).sold == 1

    def test_sold_never_exceeds_capacity_with_mixed_calls(self):
        persistence = InMemoryPersistence()
        tier = persistence.tiers.add_tier(name="Regular", price=Money(Decimal("1000")), capacity=5)
        barrier = threading.Barrier(30)

        def worker(index: int):
            barrier.wait()
            if index % 3 == 0:
                persistence.tiers.release(tier.id, 1)
            else:
                persistence.tiers.reserve(tier.id, 1)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(30)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        availability = persistence.tiers.availability(tier.id)
        assert 0 <= availability.sold <= availability.capacity

    def test_closed_handle_refuses_work(self):
        persistence = InMemoryPersistence()
        tier = persistence.tiers.add_tier(name="Regular", price=Money(Decimal("1000")), capacity=5)
        persistence.close()
        with pytest.raises(RuntimeError):
            persistence.tiers.reserve(tier.id, 1)
