# backend/cleanbook/routers/bookings.py
# POST is public (rate limited); everything else needs X-Admin-Token

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from redis import Redis
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import booking_rate_limit, require_admin
from ..models.generated import Bookings as DBBookings
from ..redis_client import get_redis
from ..schemas.bookings import (
    BookingCreate,
    BookingRead,
    BookingUpdate,
)
from ..services import booking_writer

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=list[BookingRead], dependencies=[Depends(require_admin)])
def list_bookings(
    limit: int = Query(50, ge=1, le=500),
    booking_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    query = db.query(DBBookings)
    if booking_date is not None:
        query = query.filter(DBBookings.booking_date == booking_date.isoformat()).order_by(
            DBBookings.start_time
        )
    else:
        query = query.order_by(DBBookings.id.desc())
    return query.limit(limit).all()


@router.get("/{id}", response_model=BookingRead, dependencies=[Depends(require_admin)])
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_rate_limit)],
)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    return booking_writer.create_booking(db, data, redis=redis)


@router.patch("/{id}", response_model=BookingRead, dependencies=[Depends(require_admin)])
def update_booking(
    id: int,
    data: BookingUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return booking_writer.update_booking(db, obj, data, redis=redis)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_booking(
    id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBBookings, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    booking_writer.delete_booking(db, obj, redis=redis)
