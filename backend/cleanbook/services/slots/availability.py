# backend/cleanbook/services/slots/availability.py
"""
Level 2: Availability for a requested total duration.

Day view: candidate starts (Level 1) marked available when they do not
overlap an active booking. Month view: one flag per date, true when the
day has at least one available start.

Takes into account:
- Business hours and time zone (company settings)
- Existing bookings in status pending / confirmed
- Current time in the business zone (started candidates are dropped)
- Booking horizon

Intervals are half-open: [start, end). A booking ending at 11:00 does
not block a candidate starting at 11:00.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from redis import Redis
from sqlalchemy.orm import Session

from ...models.generated import Bookings
from ...schemas.company import BusinessHours
from ..company_settings import business_hours_of, get_company_settings, zone_of
from .calculator import calculate_candidate_starts
from .config import (
    MINUTES_PER_DAY,
    BookingConfig,
    get_booking_config,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .redis_store import AvailabilityRedisStore

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("pending", "confirmed")


def get_day_availability(
    db: Session,
    target_date: date,
    duration_minutes: int,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> list[dict]:
    """
    Ordered [{"time": "HH:MM", "available": bool}] for one date.

    Uses the Redis cache when a client is given; misses are computed and
    stored for config.cache_ttl_seconds.
    """
    config = config or get_booking_config()

    if redis is not None:
        store = AvailabilityRedisStore(redis, config)
        cached = store.get_day(target_date, duration_minutes)
        if cached is not None:
            return cached

    slots = calculate_day_availability(db, target_date, duration_minutes, config, now)

    if redis is not None:
        store.store_day(target_date, duration_minutes, slots)
    return slots


def calculate_day_availability(
    db: Session,
    target_date: date,
    duration_minutes: int,
    config: BookingConfig | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """Day view computed from the database (no cache)."""
    config = config or get_booking_config()
    company = get_company_settings(db)
    business_hours = business_hours_of(company)
    today_local = local_now(now, zone_of(company))

    booked = _get_active_intervals(db, target_date, target_date)
    return _day_slots(
        business_hours,
        target_date,
        duration_minutes,
        config,
        booked.get(target_date.isoformat(), []),
        today_local,
    )


def get_month_availability(
    db: Session,
    year: int,
    month: int,
    duration_minutes: int,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> dict[str, bool]:
    """
    {"YYYY-MM-DD": bool} for every date of the month.

    A date is true iff its day view has at least one available start;
    closed, past and out-of-horizon dates are false.
    """
    config = config or get_booking_config()

    if redis is not None:
        store = AvailabilityRedisStore(redis, config)
        cached = store.get_month(year, month, duration_minutes)
        if cached is not None:
            return cached

    company = get_company_settings(db)
    business_hours = business_hours_of(company)
    today_local = local_now(now, zone_of(company))

    days_in_month = calendar.monthrange(year, month)[1]
    first = date(year, month, 1)
    last = date(year, month, days_in_month)
    booked = _get_active_intervals(db, first, last)

    days: dict[str, bool] = {}
    for day in range(1, days_in_month + 1):
        dt = date(year, month, day)
        slots = _day_slots(
            business_hours,
            dt,
            duration_minutes,
            config,
            booked.get(dt.isoformat(), []),
            today_local,
        )
        days[dt.isoformat()] = any(s["available"] for s in slots)

    if redis is not None:
        store.store_month(year, month, duration_minutes, days)
    return days


def is_slot_free(
    db: Session,
    target_date: date,
    start_min: int,
    end_min: int,
    exclude_booking_id: int | None = None,
) -> bool:
    """Overlap check of [start_min, end_min) against committed active bookings."""
    query = db.query(Bookings).filter(
        Bookings.booking_date == target_date.isoformat(),
        Bookings.status.in_(ACTIVE_STATUSES),
    )
    if exclude_booking_id is not None:
        query = query.filter(Bookings.id != exclude_booking_id)

    for booking in query.all():
        if intervals_overlap(start_min, end_min, *_booking_interval(booking)):
            return False
    return True


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open intervals [a_start, a_end) and [b_start, b_end) share an instant."""
    return a_start < b_end and b_start < a_end


def local_now(now: datetime | None, zone: ZoneInfo) -> datetime:
    """Current time in the business zone; naive values are taken as local."""
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def started_before(target_date: date, now_local: datetime, config: BookingConfig) -> int | None:
    """
    Minute of day at or before which candidates on target_date are gone.

    None → nothing has started yet (future date within horizon).
    MINUTES_PER_DAY → the whole day is unavailable (past / beyond horizon).
    """
    today = now_local.date()
    if target_date < today or target_date > today + timedelta(days=config.horizon_days):
        return MINUTES_PER_DAY
    if target_date == today:
        return now_local.hour * 60 + now_local.minute
    return None


# ── Helpers ──────────────────────────────────────────────────────────────


def _day_slots(
    business_hours: BusinessHours,
    target_date: date,
    duration_minutes: int,
    config: BookingConfig,
    booked: list[tuple[int, int]],
    now_local: datetime,
) -> list[dict]:
    starts = calculate_candidate_starts(
        business_hours,
        target_date,
        duration_minutes,
        config,
        not_after=started_before(target_date, now_local, config),
    )
    return [
        {
            "time": minutes_to_time_str(start),
            "available": not any(
                intervals_overlap(start, start + duration_minutes, b_start, b_end)
                for b_start, b_end in booked
            ),
        }
        for start in starts
    ]


def _get_active_intervals(
    db: Session,
    date_start: date,
    date_end: date,
) -> dict[str, list[tuple[int, int]]]:
    """Active booking intervals per "YYYY-MM-DD" in [date_start, date_end]."""
    bookings = (
        db.query(Bookings)
        .filter(
            Bookings.booking_date >= date_start.isoformat(),
            Bookings.booking_date <= date_end.isoformat(),
            Bookings.status.in_(ACTIVE_STATUSES),
        )
        .all()
    )

    result: dict[str, list[tuple[int, int]]] = {}
    for booking in bookings:
        result.setdefault(booking.booking_date, []).append(_booking_interval(booking))
    return result


def _booking_interval(booking: Bookings) -> tuple[int, int]:
    """Booked interval; unreadable times block the whole day."""
    try:
        start, end = time_str_to_minutes(booking.start_time), time_str_to_minutes(booking.end_time)
    except ValueError:
        start, end = 0, 0
    if end <= start:
        logger.error(
            f"Booking {booking.id} has malformed times "
            f"({booking.start_time!r}-{booking.end_time!r}), blocking {booking.booking_date}"
        )
        return 0, MINUTES_PER_DAY
    return start, end
