# backend/cleanbook/services/slots/calculator.py
"""
Level 1: Candidate start times from business hours.

Produces the clock-aligned grid of starts for one date:
  first grid point >= open  ...  last start with start + duration <= close

Contains:
✓ business hours of the weekday (closed day → no candidates)
✓ slot step (15 / 30 / 60, aligned to the clock)
✓ candidates already started when the date is today

Does NOT contain:
✗ Bookings (checked at Level 2)
"""

from datetime import date
from typing import Optional

from ...schemas.company import BusinessHours, DayHours
from .config import BookingConfig, get_booking_config, time_str_to_minutes


def calculate_candidate_starts(
    business_hours: BusinessHours,
    target_date: date,
    duration_minutes: int,
    config: BookingConfig | None = None,
    not_after: Optional[int] = None,
) -> list[int]:
    """
    Candidate start minutes for target_date.

    Args:
        business_hours: Weekly opening hours
        target_date: Calendar date (weekday taken from the date itself)
        duration_minutes: Total duration the slot must fit
        not_after: Drop candidates starting at or before this minute of the
                   day (current time when target_date is today)

    Returns:
        Ascending minutes since midnight. Empty list = closed / nothing fits.
    """
    config = config or get_booking_config()
    if duration_minutes <= 0:
        return []

    bounds = get_open_interval(business_hours, target_date)
    if bounds is None:
        return []
    open_min, close_min = bounds

    step = config.slot_step_minutes
    starts: list[int] = []
    t = config.align_up(open_min)
    while t + duration_minutes <= close_min:
        if not_after is None or t > not_after:
            starts.append(t)
        t += step
    return starts


def get_open_interval(business_hours: BusinessHours, target_date: date) -> tuple[int, int] | None:
    """(open, close) minutes for the date's weekday, None when closed."""
    day: DayHours = business_hours.for_weekday(target_date.weekday())
    if not day.is_open:
        return None
    return time_str_to_minutes(day.start), time_str_to_minutes(day.end)

