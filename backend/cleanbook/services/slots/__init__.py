# backend/cleanbook/services/slots/__init__.py
"""
Availability module.

Level 1: Candidate starts from business hours (pure)
Level 2: Day / month availability against active bookings (cached in Redis)
"""

from .config import BookingConfig, get_booking_config
from .calculator import calculate_candidate_starts
from .redis_store import AvailabilityRedisStore
from .invalidator import invalidate_availability_cache
from .availability import get_day_availability, get_month_availability, is_slot_free

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "calculate_candidate_starts",
    "AvailabilityRedisStore",
    "invalidate_availability_cache",
    "get_day_availability",
    "get_month_availability",
    "is_slot_free",
]
