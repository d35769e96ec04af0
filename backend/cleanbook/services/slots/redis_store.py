# backend/cleanbook/services/slots/redis_store.py
"""
Redis cache for computed availability views.

Key format:
  availability:day:{date}:{duration}:{step}     → JSON [{time, available}]
  availability:month:{yyyy-mm}:{duration}:{step} → JSON {date: bool}

Entries live for config.cache_ttl_seconds and are deleted by the
invalidator whenever a booking on that date changes. Redis errors are
logged and treated as a cache miss; the booking write path never reads
from here.
"""

import json
import logging
from datetime import date

from redis import Redis, RedisError

from .config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)


class AvailabilityRedisStore:
    """Redis storage wrapper for day slot lists and month maps."""

    DAY_PREFIX = "availability:day"
    MONTH_PREFIX = "availability:month"

    def __init__(self, redis: Redis, config: BookingConfig | None = None):
        self.redis = redis
        self.config = config or get_booking_config()

    def _day_key(self, dt: date, duration: int) -> str:
        return f"{self.DAY_PREFIX}:{dt.isoformat()}:{duration}:{self.config.slot_step_minutes}"

    def _month_key(self, year: int, month: int, duration: int) -> str:
        return f"{self.MONTH_PREFIX}:{year:04d}-{month:02d}:{duration}:{self.config.slot_step_minutes}"

    # ── Read ─────────────────────────────────────────────────────────────

    def get_day(self, dt: date, duration: int) -> list[dict] | None:
        """Cached day slots, or None on cache miss."""
        return self._get(self._day_key(dt, duration))

    def get_month(self, year: int, month: int, duration: int) -> dict[str, bool] | None:
        """Cached month map, or None on cache miss."""
        return self._get(self._month_key(year, month, duration))

    def _get(self, key: str):
        try:
            raw = self.redis.get(key)
        except RedisError as e:
            logger.warning(f"Availability cache read failed ({key}): {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Dropping malformed availability cache entry {key}")
            return None

    # ── Write ────────────────────────────────────────────────────────────

    def store_day(self, dt: date, duration: int, slots: list[dict]) -> None:
        self._set(self._day_key(dt, duration), slots)

    def store_month(self, year: int, month: int, duration: int, days: dict[str, bool]) -> None:
        self._set(self._month_key(year, month, duration), days)

    def _set(self, key: str, value) -> None:
        try:
            self.redis.set(key, json.dumps(value), ex=self.config.cache_ttl_seconds)
        except RedisError as e:
            logger.warning(f"Availability cache write failed ({key}): {e}")

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_for_dates(self, dates: list[date]) -> int:
        """
        Delete every cached view touching the given dates
        (all durations and steps, plus the enclosing months).

        Returns:
            Number of deleted keys.
        """
        patterns: set[str] = set()
        for dt in dates:
            patterns.add(f"{self.DAY_PREFIX}:{dt.isoformat()}:*")
            patterns.add(f"{self.MONTH_PREFIX}:{dt.year:04d}-{dt.month:02d}:*")

        try:
            keys = [key for pattern in sorted(patterns) for key in self.redis.scan_iter(match=pattern)]
            if not keys:
                return 0
            return self.redis.delete(*keys)
        except RedisError as e:
            logger.error(f"Availability cache invalidation failed: {e}")
            return 0

    def delete_all(self) -> int:
        """Delete every cached day and month view."""
        try:
            keys = [
                key
                for prefix in (self.DAY_PREFIX, self.MONTH_PREFIX)
                for key in self.redis.scan_iter(match=f"{prefix}:*")
            ]
            if not keys:
                return 0
            return self.redis.delete(*keys)
        except RedisError as e:
            logger.error(f"Availability cache invalidation failed: {e}")
            return 0
