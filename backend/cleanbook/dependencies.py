# backend/cleanbook/dependencies.py

import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request
from redis import Redis

from .config import settings
from .redis_client import get_redis
from .services.rate_limit import check_booking_rate_limit

logger = logging.getLogger(__name__)


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    """
    Admin calls carry X-Admin-Token issued by the external auth provider.
    While ADMIN_API_TOKEN is unset every admin call is refused.
    """
    expected = settings.admin_api_token
    if not expected:
        raise HTTPException(status_code=403, detail="Admin API is disabled")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        logger.warning("Rejected admin call with invalid token")
        raise HTTPException(status_code=403, detail="Forbidden")


def booking_rate_limit(request: Request, redis: Redis | None = Depends(get_redis)) -> None:
    ip = request.headers.get("X-Real-IP") or (request.client.host if request.client else "unknown")
    allowed, retry_after = check_booking_rate_limit(
        redis, ip, settings.booking_rate_limit, settings.booking_rate_window,
    )
    if not allowed:
        logger.warning(f"Booking rate limit exceeded for {ip}")
        raise HTTPException(
            status_code=429,
            detail="Too many booking attempts, try again later",
            headers={"Retry-After": str(retry_after)} if retry_after else None,
        )
