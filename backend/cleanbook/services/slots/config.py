# backend/cleanbook/services/slots/config.py
"""
Booking configuration for slots calculation.
"""

from dataclasses import dataclass
from functools import lru_cache

from ...config import settings


# Storage granularity of slot claims. Every allowed slot step is a multiple.
CLAIM_CELL_MINUTES = 15

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for booking/slots system.

    Attributes:
        slot_step_minutes: Candidate start grid in minutes (15/30/60)
        horizon_days: How many days ahead bookings are accepted
        cache_ttl_seconds: Redis TTL for cached availability views
    """
    slot_step_minutes: int = 30  # 15 / 30 / 60
    horizon_days: int = 90
    cache_ttl_seconds: int = 60

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")
        if self.horizon_days < 1:
            raise ValueError(f"horizon_days must be positive, got {self.horizon_days}")

    def align_up(self, minutes: int) -> int:
        """First grid point at or after `minutes`."""
        step = self.slot_step_minutes
        return -(-minutes // step) * step


@lru_cache
def get_booking_config() -> BookingConfig:
    """Booking configuration from environment settings (singleton)."""
    return BookingConfig(
        slot_step_minutes=settings.slot_step_minutes,
        horizon_days=settings.booking_horizon_days,
        cache_ttl_seconds=settings.availability_cache_ttl,
    )


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight ("24:00" allowed)."""
    try:
        hour_str, minute_str = value.strip().split(":")
        hour, minute = int(hour_str), int(minute_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time: {value!r}") from None
    if not (0 <= minute < 60) or not (0 <= hour <= 24) or (hour == 24 and minute):
        raise ValueError(f"Invalid time: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
