# backend/cleanbook/services/rate_limit.py
"""
Fixed-window rate limiting in Redis.

Key: rl:{scope}:{client}, INCR per request, EXPIRE set on the first hit.
Redis failures fail open: the request is allowed and the error logged.
"""

import logging
from typing import Optional

from redis import Redis

logger = logging.getLogger(__name__)


def check_limit(
    redis: Redis | None,
    key: str,
    limit: int,
    window: int,
) -> tuple[bool, Optional[int]]:
    """
    Count one hit. Returns (allowed, retry_after_seconds).

    limit=0 disables the check.
    """
    if redis is None or limit <= 0:
        return True, None

    try:
        pipe = redis.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()

        if ttl == -1:
            redis.expire(key, window)
            ttl = window

        if count > limit:
            return False, ttl

        return True, None

    except Exception as e:
        logger.error(f"Rate limit check failed: {e}")
        return True, None  # fail open


def check_booking_rate_limit(
    redis: Redis | None,
    client_ip: str,
    limit: int,
    window: int,
) -> tuple[bool, Optional[int]]:
    """Booking creation limit per client IP."""
    return check_limit(redis, f"rl:booking:{client_ip}", limit, window)
