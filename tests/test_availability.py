"""Availability ledger: checker, conditional reservation, release and management helpers."""
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability import AvailabilitySlot
from reservations import (
    AvailabilityConflict,
    BookingTimeout,
    check_availability,
    create_availability,
    delete_availability,
    get_availability,
    release_slot,
    resize_availability,
    seed_availability_window,
    update_availability_slots,
)
from utils.dates import utc_today


def test_check_availability_reports_remaining_capacity(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day, slots=3, booked=1)

    assert check_availability(charter_id, trip_day, 1) is True
    assert check_availability(charter_id, trip_day, 2) is True
    assert check_availability(charter_id, trip_day, 3) is False


def test_check_availability_without_ledger_row_is_not_available(captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    assert check_availability(charter_id, trip_day, 1) is False


def test_check_availability_strips_time_of_day(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day)

    evening = datetime.combine(trip_day, datetime.min.time()) + timedelta(hours=18, minutes=30)
    assert check_availability(charter_id, evening, 1) is True
    assert check_availability(charter_id, trip_day.isoformat() + "T06:00:00Z", 1) is True


def test_check_availability_rejects_non_positive_request(captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    with pytest.raises(ValueError):
        check_availability(charter_id, trip_day, 0)


def test_update_availability_slots_consumes_until_full(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day, slots=2)

    assert update_availability_slots(charter_id, trip_day, 1) is True
    assert update_availability_slots(charter_id, trip_day, 1) is True
    assert update_availability_slots(charter_id, trip_day, 1) is False
    db.session.commit()

    assert build.ledger(charter_id, trip_day) == (2, 2)


def test_update_availability_slots_refuses_partial_fit(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day, slots=3, booked=2)

    assert update_availability_slots(charter_id, trip_day, 2) is False
    db.session.commit()
    assert build.ledger(charter_id, trip_day) == (3, 2)


def test_update_availability_slots_missing_row(captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    assert update_availability_slots(charter_id, trip_day, 1) is False


def test_release_slot_decrements_and_floors_at_zero(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day, slots=4, booked=2)

    release_slot(charter_id, trip_day, 1)
    db.session.commit()
    assert build.ledger(charter_id, trip_day) == (4, 1)

    release_slot(charter_id, trip_day, 3)
    db.session.commit()
    assert build.ledger(charter_id, trip_day) == (4, 0)


def test_release_slot_without_row_is_a_no_op(captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    release_slot(charter_id, trip_day, 1)
    db.session.commit()


def test_storage_rejects_overbooked_row(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, trip_day, slots=1)

    with pytest.raises(IntegrityError):
        db.session.execute(
            update(AvailabilitySlot)
            .where(AvailabilitySlot.charter_id == charter_id)
            .values(booked_slots=2)
        )
        db.session.commit()
    db.session.rollback()
    assert build.ledger(charter_id, trip_day) == (1, 0)


def test_create_availability_is_unique_per_charter_and_day(captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    row = create_availability(charter_id, trip_day, 2)
    assert row.slots == 2 and row.booked_slots == 0

    with pytest.raises(AvailabilityConflict):
        create_availability(charter_id, trip_day, 5)


def test_resize_cannot_shrink_below_booked(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    slot_id = build.slot(charter_id, trip_day, slots=4, booked=3)

    assert resize_availability(slot_id, 2) is False
    assert build.ledger(charter_id, trip_day) == (4, 3)

    assert resize_availability(slot_id, 3) is True
    assert build.ledger(charter_id, trip_day) == (3, 3)

    assert resize_availability(slot_id, 6) is True
    assert build.ledger(charter_id, trip_day) == (6, 3)


def test_delete_only_when_nothing_booked(build, captain_charter, trip_day, ctx):
    _, charter_id = captain_charter
    busy_id = build.slot(charter_id, trip_day, slots=2, booked=1)
    free_id = build.slot(charter_id, trip_day + timedelta(days=1), slots=2)

    assert delete_availability(busy_id) is False
    assert delete_availability(free_id) is True
    assert db.session.get(AvailabilitySlot, free_id) is None
    assert db.session.get(AvailabilitySlot, busy_id) is not None


def test_seed_window_skips_existing_dates(build, captain_charter, ctx):
    _, charter_id = captain_charter
    start = utc_today() + timedelta(days=1)
    build.slot(charter_id, start + timedelta(days=2), slots=5)

    assert seed_availability_window(charter_id, days=7, slots=2, start=start) == 6
    assert seed_availability_window(charter_id, days=10, slots=2, start=start) == 3

    assert build.ledger(charter_id, start + timedelta(days=2)) == (5, 0)
    assert build.ledger(charter_id, start + timedelta(days=9)) == (2, 0)


def test_get_availability_returns_month_in_date_order(build, captain_charter, ctx):
    _, charter_id = captain_charter
    build.slot(charter_id, date(2031, 3, 15))
    build.slot(charter_id, date(2031, 3, 1))
    build.slot(charter_id, date(2031, 4, 1))
    build.slot(charter_id, date(2031, 2, 28))

    rows = get_availability(charter_id, "2031-03")
    assert [r.date.isoformat() for r in rows] == ["2031-03-01", "2031-03-15"]

    with pytest.raises(ValueError):
        get_availability(charter_id, "March")


def test_ledger_writers_time_out_under_a_held_write_lock(build, captain_charter, trip_day, ctx, hold_write_lock):
    _, charter_id = captain_charter

    with hold_write_lock():
        with pytest.raises(BookingTimeout):
            create_availability(charter_id, trip_day, 2)
        with pytest.raises(BookingTimeout):
            seed_availability_window(charter_id, days=3, slots=1, start=trip_day)

    assert get_availability(charter_id, trip_day.strftime("%Y-%m")) == []
    assert create_availability(charter_id, trip_day, 2).slots == 2
