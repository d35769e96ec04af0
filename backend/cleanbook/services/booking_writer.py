# backend/cleanbook/services/booking_writer.py
"""
Booking writer: the only code path that creates or moves bookings.

create_booking:
  1. Price every cart line server-side (client prices are never trusted)
  2. Enforce the company minimum booking value
  3. Check the start is a grid candidate inside business hours, not past,
     and free against committed bookings
  4. Insert booking + items + slot claims in one transaction
  5. Invalidate cached availability, emit booking_created

Slot claims: one booking_slot_claims row per 15-minute cell of
[start, end). The unique (booking_date, slot_time) constraint rejects the
second of two overlapping commits, so a race that slips past step 3 ends
in SlotConflict (409) and a rollback, never in a double booking.
"""

import json
import logging
from datetime import date, datetime
from typing import Optional

from redis import Redis
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.generated import (
    BookingItems as DBBookingItem,
    Bookings as DBBooking,
    BookingSlotClaims as DBSlotClaim,
    Services as DBService,
)
from ..schemas.bookings import BookingCreate, BookingUpdate
from ..schemas.pricing import CartItemSelection, PriceQuote
from .company_settings import business_hours_of, get_company_settings, zone_of
from .errors import BookingValidationError, InvalidStatusTransition, NotFound, SlotConflict
from .events import emit_event, emit_analytics
from .pricing import quote_line
from .slots.availability import ACTIVE_STATUSES, is_slot_free, local_now, started_before
from .slots.calculator import calculate_candidate_starts
from .slots.config import (
    CLAIM_CELL_MINUTES,
    BookingConfig,
    get_booking_config,
    minutes_to_time_str,
    time_str_to_minutes,
)
from .slots.invalidator import invalidate_availability_cache

logger = logging.getLogger(__name__)


BOOKING_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def create_booking(
    db: Session,
    request: BookingCreate,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> DBBooking:
    """
    Create a booking from cart selections.

    Raises:
        NotFound: unknown or inactive service
        InvalidSelection / InvalidQuantity: a line cannot be priced
        BookingValidationError: below minimum, start outside business hours
        SlotConflict: start already passed or interval taken
    """
    config = config or get_booking_config()
    company = get_company_settings(db)

    lines = _price_cart(db, request.cart_items)
    total_price = round(sum(quote.price for _, quote in lines), 2)
    total_duration = sum(quote.duration_min for _, quote in lines)

    minimum = company.minimum_booking_value or 0
    if total_price < minimum:
        raise BookingValidationError(
            f"Minimum booking value is ${minimum:.2f} (cart total ${total_price:.2f})"
        )

    start_min = time_str_to_minutes(request.start_time)
    end_min = start_min + total_duration
    _check_slot(db, company, request.booking_date, start_min, total_duration, config, now)

    booking = DBBooking(
        customer_name=request.customer_name.strip(),
        customer_email=request.customer_email,
        customer_phone=request.customer_phone.strip(),
        customer_address=request.customer_address.strip(),
        booking_date=request.booking_date.isoformat(),
        start_time=minutes_to_time_str(start_min),
        end_time=minutes_to_time_str(end_min),
        total_duration_minutes=total_duration,
        total_price=total_price,
        payment_method=request.payment_method,
        payment_status="unpaid",
        status="pending",
    )
    booking.items = [_item_row(service, quote) for service, quote in lines]
    booking.slot_claims = _claims_for(booking.booking_date, start_min, end_min)

    db.add(booking)
    _commit_or_conflict(db)
    db.refresh(booking)

    logger.info(
        f"Booking {booking.id} created: {booking.booking_date} "
        f"{booking.start_time}-{booking.end_time}, ${booking.total_price:.2f}"
    )
    invalidate_availability_cache(redis, [request.booking_date])
    emit_event("booking_created", _event_payload(booking), redis)
    emit_analytics("purchase", {
        "booking_id": booking.id,
        "value": booking.total_price,
        "items": [{"service_id": i.service_id, "quantity": i.quantity, "price": i.price} for i in booking.items],
    }, redis)
    return booking


def update_booking_status(
    db: Session,
    booking: DBBooking,
    new_status: str,
    redis: Redis | None = None,
) -> DBBooking:
    """
    Move a booking along BOOKING_TRANSITIONS.

    Cancelling releases the slot claims; the booking row is kept.
    """
    if new_status == booking.status:
        return booking

    _check_transition(booking.status, new_status)

    old_status = booking.status
    booking.status = new_status
    if new_status not in ACTIVE_STATUSES:
        booking.slot_claims = []

    db.commit()
    db.refresh(booking)

    logger.info(f"Booking {booking.id}: {old_status} → {new_status}")
    invalidate_availability_cache(redis, [date.fromisoformat(booking.booking_date)])
    emit_event("booking_status_changed", {
        **_event_payload(booking),
        "old_status": old_status,
    }, redis)
    return booking


def update_booking(
    db: Session,
    booking: DBBooking,
    data: BookingUpdate,
    config: BookingConfig | None = None,
    now: datetime | None = None,
    redis: Redis | None = None,
) -> DBBooking:
    """
    Admin edit: customer details, payment status, reschedule, status.

    A reschedule keeps the booked duration and goes through the same
    business-hours and conflict checks as a new booking.
    """
    config = config or get_booking_config()
    fields = data.model_dump(exclude_unset=True)
    new_status = fields.pop("status", None)
    new_date: Optional[date] = fields.pop("booking_date", None)
    new_start: Optional[str] = fields.pop("start_time", None)

    old_date = date.fromisoformat(booking.booking_date)
    affected_dates = {old_date}
    rescheduled = new_date is not None or new_start is not None

    # Status is checked before any write so a rejected edit changes nothing
    if new_status is not None and new_status != booking.status:
        _check_transition(booking.status, new_status)

    if rescheduled:
        if booking.status not in ACTIVE_STATUSES:
            raise BookingValidationError(f"Cannot reschedule a {booking.status} booking")

        target_date = new_date or old_date
        start_min = time_str_to_minutes(new_start or booking.start_time)
        end_min = start_min + booking.total_duration_minutes

        company = get_company_settings(db)
        _check_slot(
            db, company, target_date, start_min, booking.total_duration_minutes,
            config, now, exclude_booking_id=booking.id,
        )

        # Old claims must be gone before the new ones hit the unique index
        booking.slot_claims = []
        db.flush()

        booking.booking_date = target_date.isoformat()
        booking.start_time = minutes_to_time_str(start_min)
        booking.end_time = minutes_to_time_str(end_min)
        booking.slot_claims = _claims_for(booking.booking_date, start_min, end_min)
        affected_dates.add(target_date)

    for field, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        setattr(booking, field, value)

    _commit_or_conflict(db)
    db.refresh(booking)

    if rescheduled:
        invalidate_availability_cache(redis, sorted(affected_dates))

    if new_status is not None:
        return update_booking_status(db, booking, new_status, redis)
    return booking


def delete_booking(db: Session, booking: DBBooking, redis: Redis | None = None) -> None:
    """Delete a booking with its items and slot claims."""
    booking_id = booking.id
    booking_date = date.fromisoformat(booking.booking_date)
    payload = _event_payload(booking)

    db.delete(booking)
    db.commit()

    logger.info(f"Booking {booking_id} deleted")
    invalidate_availability_cache(redis, [booking_date])
    emit_event("booking_deleted", payload, redis)


# ── Helpers ──────────────────────────────────────────────────────────────


def _price_cart(
    db: Session,
    selections: list[CartItemSelection],
) -> list[tuple[DBService, PriceQuote]]:
    if not selections:
        raise BookingValidationError("Cart is empty")

    ids = [s.service_id for s in selections]
    if len(set(ids)) != len(ids):
        raise BookingValidationError("Each service can appear only once per booking")

    services = {
        s.id: s
        for s in db.query(DBService).filter(DBService.id.in_(ids), DBService.is_active == 1).all()
    }

    lines = []
    for selection in selections:
        service = services.get(selection.service_id)
        if service is None:
            raise NotFound(f"Service {selection.service_id} not found")
        lines.append((service, quote_line(service, selection)))
    return lines


def _check_transition(old_status: str, new_status: str) -> None:
    if new_status not in BOOKING_TRANSITIONS.get(old_status, set()):
        raise InvalidStatusTransition(
            f"Cannot change booking status from {old_status} to {new_status}"
        )


def _check_slot(
    db: Session,
    company,
    target_date: date,
    start_min: int,
    duration: int,
    config: BookingConfig,
    now: datetime | None,
    exclude_booking_id: int | None = None,
) -> None:
    """
    The start must be one of the day's candidates: on the grid, inside
    business hours, not already started, within the horizon. Then it must
    not overlap a committed active booking.
    """
    business_hours = business_hours_of(company)
    all_starts = calculate_candidate_starts(business_hours, target_date, duration, config)
    if start_min not in all_starts:
        raise BookingValidationError(
            f"{minutes_to_time_str(start_min)} on {target_date.isoformat()} "
            f"is outside business hours for a {duration} minute booking"
        )

    now_local = local_now(now, zone_of(company))
    cutoff = started_before(target_date, now_local, config)
    if cutoff is not None and start_min <= cutoff:
        if target_date > now_local.date():
            raise BookingValidationError(
                f"Bookings are accepted up to {config.horizon_days} days ahead"
            )
        raise SlotConflict("Selected time has already passed")

    if not is_slot_free(db, target_date, start_min, start_min + duration, exclude_booking_id):
        raise SlotConflict()


def _claims_for(booking_date: str, start_min: int, end_min: int) -> list[DBSlotClaim]:
    return [
        DBSlotClaim(booking_date=booking_date, slot_time=minutes_to_time_str(cell))
        for cell in range(
            start_min - start_min % CLAIM_CELL_MINUTES,
            end_min,
            CLAIM_CELL_MINUTES,
        )
    ]


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if DBSlotClaim.__tablename__ not in str(e.orig):
            raise
        logger.warning(f"Slot claim conflict, booking rolled back: {e.orig}")
        raise SlotConflict() from None


def _item_row(service: DBService, quote: PriceQuote) -> DBBookingItem:
    return DBBookingItem(
        service_id=service.id,
        service_name=service.name,
        pricing_type=quote.pricing_type,
        price=quote.price,
        quantity=quote.quantity,
        area_size=quote.area_size,
        area_value=quote.area_value,
        selected_options=(
            json.dumps([o.model_dump() for o in quote.selected_options])
            if quote.selected_options else None
        ),
        selected_frequency=(
            quote.selected_frequency.model_dump_json() if quote.selected_frequency else None
        ),
        customer_notes=quote.customer_notes,
        price_breakdown=quote.breakdown.model_dump_json(),
    )


def _event_payload(booking: DBBooking) -> dict:
    return {
        "booking_id": booking.id,
        "booking_date": booking.booking_date,
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "status": booking.status,
        "customer_name": booking.customer_name,
        "total_price": booking.total_price,
    }
