# backend/cleanbook/routers/availability.py
"""
Availability API endpoints.

GET /availability        - Day view: [{time, available}] for a total duration
GET /availability/month  - Month view: {date: has_available_slot}
GET /availability/check  - Is [startTime, endTime) free on date
"""

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..redis_client import get_redis
from ..schemas.slots import SlotCheckResponse, TimeSlot
from ..services.slots import get_day_availability, get_month_availability, is_slot_free
from ..services.slots.config import time_str_to_minutes


router = APIRouter(prefix="/availability", tags=["availability"])

MAX_DURATION = 24 * 60


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format, expected YYYY-MM-DD")


@router.get("", response_model=list[TimeSlot])
def get_day_slots(
    date_str: str = Query(..., alias="date"),
    total_duration: int = Query(..., alias="totalDurationMinutes", gt=0, le=MAX_DURATION),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    """Candidate starts of the day that fit the duration."""
    target_date = _parse_date(date_str)
    return get_day_availability(db, target_date, total_duration, redis=redis)


@router.get("/month", response_model=dict[str, bool])
def get_month_slots(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    total_duration: int = Query(..., alias="totalDurationMinutes", gt=0, le=MAX_DURATION),
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    """Every date of the month mapped to whether it has a free slot."""
    return get_month_availability(db, year, month, total_duration, redis=redis)


@router.get("/check", response_model=SlotCheckResponse)
def check_slot(
    date_str: str = Query(..., alias="date"),
    start_time: str = Query(..., alias="startTime"),
    end_time: str = Query(..., alias="endTime"),
    db: Session = Depends(get_db),
):
    target_date = _parse_date(date_str)
    try:
        start_min = time_str_to_minutes(start_time)
        end_min = time_str_to_minutes(end_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if end_min <= start_min:
        raise HTTPException(status_code=400, detail="endTime must be later than startTime")

    return {"available": is_slot_free(db, target_date, start_min, end_min)}
