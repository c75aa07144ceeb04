"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

import pytest
from django.core.cache import cache

from ticketing import models as orm
from ticketing.handlers.views import EVENT_CACHE_KEY


@pytest.mark.django_db
class TestEventCache:
    """Tests for the cached event details."""

    def test_event_response_is_cached(self, api_client):
        api_client.get("/api/event")
        assert cache.get(EVENT_CACHE_KEY)["name"] == "NTS Rockstar Party"

    def test_event_save_invalidates_cache(self, api_client):
        api_client.get("/api/event")
        event = orm.Event.objects.get()
        event.name = "Graduation Gala"
        event.save()

        assert cache.get(EVENT_CACHE_KEY) is None
        assert api_client.get("/api/event").data["name"] == "Graduation Gala"

    def test_event_delete_invalidates_cache(self, api_client):
        api_client.get("/api/event")
        orm.Event.objects.get().delete()
        assert cache.get(EVENT_CACHE_KEY) is None

    def test_tier_changes_are_not_cached(self, api_client):
        tier = orm.TicketTier.objects.create(name="Regular", price="1000", capacity=2)
        assert api_client.get("/api/tiers").data[0]["remaining"] == 2
        orm.TicketTier.objects.filter(pk=tier.pk).update(sold=2)
        assert api_client.get("/api/tiers").data[0]["remaining"] == 0
