"""Booking writer: validation, conflicts, claims, status machine."""

import threading
from datetime import datetime, timedelta

import pytest

from cleanbook.models.generated import BookingItems, Bookings, BookingSlotClaims
from cleanbook.schemas.bookings import BookingCreate, BookingUpdate
from cleanbook.services import booking_writer
from cleanbook.services.booking_writer import (
    BOOKING_TRANSITIONS,
    create_booking,
    delete_booking,
    update_booking,
    update_booking_status,
)
from cleanbook.services.errors import (
    BookingValidationError,
    InvalidSelection,
    InvalidStatusTransition,
    NotFound,
    SlotConflict,
)
from cleanbook.services.slots import BookingConfig, get_day_availability

from conftest import MONDAY, NOW, SATURDAY

CONFIG = BookingConfig(slot_step_minutes=30)


def request_for(service_ids, start="10:00", booking_date=MONDAY, **extra) -> BookingCreate:
    return BookingCreate(
        customer_name="Jane Roe",
        customer_email="jane@example.com",
        customer_phone="555-0100",
        customer_address="1 Main St",
        booking_date=booking_date,
        start_time=start,
        cart_items=[{"service_id": sid} for sid in service_ids],
        **extra,
    )


def book(db, service_ids, start="10:00", **kwargs):
    return create_booking(db, request_for(service_ids, start, **kwargs), CONFIG, now=NOW)


class TestCreate:
    def test_booking_is_priced_and_claims_its_interval(self, db, company, make_service, fake_redis):
        windows = make_service(name="Windows", price=40, duration_min=30)
        kitchen = make_service(name="Kitchen", price=75.5, duration_min=60)

        booking = create_booking(db, request_for([windows.id, kitchen.id]), CONFIG, now=NOW, redis=fake_redis)

        assert booking.id is not None
        assert booking.status == "pending"
        assert booking.payment_status == "unpaid"
        assert booking.total_price == 115.5
        assert booking.total_duration_minutes == 90
        assert (booking.start_time, booking.end_time) == ("10:00", "11:30")
        assert [i.service_name for i in booking.items] == ["Windows", "Kitchen"]
        assert sorted(c.slot_time for c in booking.slot_claims) == [
            "10:00", "10:15", "10:30", "10:45", "11:00", "11:15",
        ]
        assert [e["type"] for e in fake_redis.events()] == ["booking_created"]
        assert fake_redis.events("events:analytics")[0]["value"] == 115.5

    def test_item_snapshot_keeps_selection(self, db, company, make_service):
        service = make_service(
            name="Home clean",
            price=100,
            duration_min=120,
            pricing_type="base_plus_addons",
            options=[{"name": "Oven", "price": 25}],
            frequencies=[{"name": "Weekly", "discount_percent": 10}],
        )
        request = BookingCreate(
            customer_name="Jane Roe",
            customer_phone="555-0100",
            customer_address="1 Main St",
            booking_date=MONDAY,
            start_time="09:00",
            cart_items=[{
                "service_id": service.id,
                "selected_options": [{"option_id": service.options[0].id, "quantity": 2}],
                "selected_frequency_id": service.frequencies[0].id,
            }],
        )

        booking = create_booking(db, request, CONFIG, now=NOW)

        item = booking.items[0]
        assert item.price == 135
        assert '"Oven"' in item.selected_options
        assert '"Weekly"' in item.selected_frequency
        assert booking.total_price == 135

    def test_client_price_is_ignored(self, db, company, make_service):
        service = make_service(price=60)

        booking = book(db, [service.id], total_price=1.0)

        assert booking.total_price == 60

    def test_overlap_is_a_conflict(self, db, company, make_service):
        service = make_service(duration_min=60)
        book(db, [service.id], "10:00")

        with pytest.raises(SlotConflict):
            book(db, [service.id], "10:30")

    def test_adjacent_bookings_are_allowed(self, db, company, make_service):
        service = make_service(duration_min=60)
        book(db, [service.id], "10:00")

        booking = book(db, [service.id], "11:00")

        assert booking.start_time == "11:00"

    @pytest.mark.parametrize("start, booking_date", [
        ("07:30", MONDAY),     # before opening
        ("17:30", MONDAY),     # ends after closing
        ("10:10", MONDAY),     # off the grid
        ("10:00", SATURDAY),   # closed day
    ])
    def test_start_must_be_a_candidate(self, db, company, make_service, start, booking_date):
        service = make_service(duration_min=60)

        with pytest.raises(BookingValidationError):
            book(db, [service.id], start, booking_date=booking_date)

    def test_started_slot_is_a_conflict(self, db, company, make_service):
        service = make_service(duration_min=60)
        now = datetime(MONDAY.year, MONDAY.month, MONDAY.day, 12, 0)

        with pytest.raises(SlotConflict):
            create_booking(db, request_for([service.id], "10:00"), CONFIG, now=now)

    def test_beyond_horizon(self, db, company, make_service):
        service = make_service(duration_min=60)
        config = BookingConfig(slot_step_minutes=30, horizon_days=7)

        with pytest.raises(BookingValidationError):
            create_booking(db, request_for([service.id], booking_date=MONDAY + timedelta(days=14)), config, now=NOW)

    def test_minimum_booking_value(self, db, company, make_service):
        company.minimum_booking_value = 100
        db.commit()
        service = make_service(price=60)

        with pytest.raises(BookingValidationError):
            book(db, [service.id])

        assert db.query(Bookings).count() == 0

    def test_unknown_service(self, db, company):
        with pytest.raises(NotFound):
            book(db, [404])

    def test_inactive_service(self, db, company, make_service):
        service = make_service(is_active=0)

        with pytest.raises(NotFound):
            book(db, [service.id])

    def test_duplicate_services_rejected(self, db, company, make_service):
        service = make_service()

        with pytest.raises(BookingValidationError):
            book(db, [service.id, service.id])

    def test_unpriceable_line_rejected(self, db, company, make_service):
        service = make_service(pricing_type="custom_quote", price=0)

        with pytest.raises(InvalidSelection):
            book(db, [service.id])


class TestStorageLevelGuarantee:
    def test_claims_reject_overlap_that_skipped_the_check(self, db, company, make_service, monkeypatch):
        service = make_service(duration_min=60)
        book(db, [service.id], "10:00")
        monkeypatch.setattr(booking_writer, "is_slot_free", lambda *args, **kwargs: True)

        with pytest.raises(SlotConflict):
            book(db, [service.id], "10:30")

        assert db.query(Bookings).count() == 1
        assert db.query(BookingItems).count() == 1
        assert db.query(BookingSlotClaims).count() == 4

    def test_concurrent_requests_exactly_one_wins(self, session_factory, company, make_service):
        service = make_service(duration_min=60)
        barrier = threading.Barrier(2)
        results = []

        def attempt(start):
            session = session_factory()
            try:
                barrier.wait()
                create_booking(session, request_for([service.id], start), CONFIG, now=NOW)
                results.append("created")
            except SlotConflict:
                results.append("conflict")
            finally:
                session.close()

        threads = [threading.Thread(target=attempt, args=(start,)) for start in ("10:00", "10:30")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(results) == ["conflict", "created"]

        check = session_factory()
        try:
            assert check.query(Bookings).count() == 1
        finally:
            check.close()


class TestStatus:
    def test_transition_table(self):
        assert BOOKING_TRANSITIONS["pending"] == {"confirmed", "cancelled"}
        assert BOOKING_TRANSITIONS["confirmed"] == {"completed", "cancelled"}
        assert BOOKING_TRANSITIONS["completed"] == set()
        assert BOOKING_TRANSITIONS["cancelled"] == set()

    def test_happy_path(self, db, company, make_service):
        booking = book(db, [make_service().id])

        update_booking_status(db, booking, "confirmed")
        update_booking_status(db, booking, "completed")

        assert booking.status == "completed"

    @pytest.mark.parametrize("path", [
        ["completed"],
        ["cancelled", "confirmed"],
        ["confirmed", "completed", "cancelled"],
    ])
    def test_invalid_transitions(self, db, company, make_service, path):
        booking = book(db, [make_service().id])
        *allowed, rejected = path
        for status in allowed:
            update_booking_status(db, booking, status)

        with pytest.raises(InvalidStatusTransition):
            update_booking_status(db, booking, rejected)

    def test_cancel_frees_interval(self, db, company, make_service, fake_redis):
        service = make_service(duration_min=60)
        booking = book(db, [service.id], "14:00")
        before = get_day_availability(db, MONDAY, 60, CONFIG, now=NOW, redis=fake_redis)
        assert {"time": "14:00", "available": False} in before

        update_booking_status(db, booking, "cancelled", redis=fake_redis)

        after = get_day_availability(db, MONDAY, 60, CONFIG, now=NOW, redis=fake_redis)
        assert {"time": "14:00", "available": True} in after
        assert db.query(BookingSlotClaims).count() == 0
        assert db.get(Bookings, booking.id).status == "cancelled"
        assert book(db, [service.id], "14:00").start_time == "14:00"


class TestUpdate:
    def test_reschedule_moves_claims(self, db, company, make_service):
        booking = book(db, [make_service(duration_min=60).id], "10:00")

        update_booking(db, booking, BookingUpdate(start_time="15:00"), CONFIG, now=NOW)

        assert (booking.start_time, booking.end_time) == ("15:00", "16:00")
        claims = db.query(BookingSlotClaims).order_by(BookingSlotClaims.slot_time).all()
        assert [c.slot_time for c in claims] == ["15:00", "15:15", "15:30", "15:45"]

    def test_reschedule_within_own_interval(self, db, company, make_service):
        booking = book(db, [make_service(duration_min=60).id], "10:00")

        update_booking(db, booking, BookingUpdate(start_time="10:30"), CONFIG, now=NOW)

        assert booking.end_time == "11:30"

    def test_reschedule_onto_other_booking(self, db, company, make_service):
        service = make_service(duration_min=60)
        book(db, [service.id], "10:00")
        other = book(db, [service.id], "13:00")

        with pytest.raises(SlotConflict):
            update_booking(db, other, BookingUpdate(start_time="10:30"), CONFIG, now=NOW)

        db.refresh(other)
        assert other.start_time == "13:00"

    def test_reschedule_to_another_day(self, db, company, make_service):
        booking = book(db, [make_service(duration_min=60).id], "10:00")
        tuesday = MONDAY + timedelta(days=1)

        update_booking(db, booking, BookingUpdate(booking_date=tuesday), CONFIG, now=NOW)

        assert booking.booking_date == tuesday.isoformat()
        assert {c.booking_date for c in booking.slot_claims} == {tuesday.isoformat()}

    def test_customer_details_and_status(self, db, company, make_service):
        booking = book(db, [make_service().id])

        update_booking(
            db, booking,
            BookingUpdate(customer_phone=" 555-0199 ", payment_status="paid", status="confirmed"),
            CONFIG, now=NOW,
        )

        assert booking.customer_phone == "555-0199"
        assert booking.payment_status == "paid"
        assert booking.status == "confirmed"

    def test_invalid_status_leaves_reschedule_unapplied(self, db, company, make_service):
        booking = book(db, [make_service(duration_min=60).id], "10:00")
        update_booking_status(db, booking, "confirmed")

        with pytest.raises(InvalidStatusTransition):
            update_booking(
                db, booking, BookingUpdate(start_time="14:00", status="pending"), CONFIG, now=NOW,
            )

        db.refresh(booking)
        assert (booking.start_time, booking.status) == ("10:00", "confirmed")
        claims = db.query(BookingSlotClaims).order_by(BookingSlotClaims.slot_time).all()
        assert [c.slot_time for c in claims] == ["10:00", "10:15", "10:30", "10:45"]

    def test_cancelled_booking_cannot_move(self, db, company, make_service):
        booking = book(db, [make_service().id])
        update_booking_status(db, booking, "cancelled")

        with pytest.raises(BookingValidationError):
            update_booking(db, booking, BookingUpdate(start_time="15:00"), CONFIG, now=NOW)


class TestDelete:
    def test_delete_removes_items_and_claims(self, db, company, make_service, fake_redis):
        booking = book(db, [make_service().id])

        delete_booking(db, booking, redis=fake_redis)

        assert db.query(Bookings).count() == 0
        assert db.query(BookingItems).count() == 0
        assert db.query(BookingSlotClaims).count() == 0
        assert fake_redis.events()[-1]["type"] == "booking_deleted"
