"""Django signals for cache invalidation.

Only the event details are cached. Tier prices and availability change
through conditional updates that bypass model signals, so they are never
cached.
"""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from ticketing.handlers.views import EVENT_CACHE_KEY
from ticketing.models import Event


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate the cached event details when the event is saved or deleted."""
    cache.delete(EVENT_CACHE_KEY)
