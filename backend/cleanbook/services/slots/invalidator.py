# backend/cleanbook/services/slots/invalidator.py
"""
Cache invalidation for availability views.

Triggers:
✓ Booking created / rescheduled / cancelled / deleted → its date(s)
✓ Business hours or time zone changed → all cached views
"""

from datetime import date
from redis import Redis

from .redis_store import AvailabilityRedisStore


def invalidate_availability_cache(
    redis: Redis | None,
    dates: list[date] | None = None,
) -> int:
    """
    Invalidate cached availability.

    Args:
        redis: Redis client (None → nothing cached, nothing to do)
        dates: Dates whose day and month views are dropped,
               or None to drop every cached view

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        return 0
    store = AvailabilityRedisStore(redis)
    if dates is None:
        return store.delete_all()
    return store.delete_for_dates(dates)
