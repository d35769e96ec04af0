# backend/cleanbook/redis_client.py

from redis import Redis

from .config import settings

# Connections are opened lazily on first command
redis_client = Redis.from_url(
    settings.redis_url,
    decode_responses=True,
    socket_timeout=2.0,
    socket_connect_timeout=2.0,
)


def get_redis() -> Redis | None:
    """FastAPI dependency; tests override it with None or a mock."""
    return redis_client
