"""
backend/cleanbook/services/events.py

Event emitter: pushes events to Redis queues for external consumers.

Two queues:
- events:p2p: booking lifecycle notifications (booking_created,
  booking_status_changed, booking_deleted)
- events:analytics: cart funnel events (add_to_cart, remove_from_cart,
  purchase)

Emission is fire-and-forget: failures are logged, never raised.
"""

import json
import time
import logging

from redis import Redis

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"
ANALYTICS_QUEUE = "events:analytics"


def emit_event(event_type: str, payload: dict, redis: Redis | None = redis_client) -> None:
    """
    Emit a booking notification event.

    Pushed to Redis list `events:p2p` for the consumer loop.
    """
    _push(P2P_QUEUE, event_type, payload, redis)


def emit_analytics(event_type: str, payload: dict, redis: Redis | None = redis_client) -> None:
    """
    Emit an analytics event.

    Pushed to Redis list `events:analytics`.
    """
    _push(ANALYTICS_QUEUE, event_type, payload, redis)


def _push(queue: str, event_type: str, payload: dict, redis: Redis | None) -> None:
    if redis is None:
        logger.debug(f"Event {event_type} dropped: no Redis")
        return
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(queue, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {queue}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
