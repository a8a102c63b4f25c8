"""
Availability ledger operations.

``check_availability`` is advisory. ``update_availability_slots`` and
``release_slot`` are the only writers of ``booked_slots`` and do so with a
single conditional UPDATE each, so the database decides who wins when
several transactions target the same row.
"""
import logging
from datetime import timedelta

from sqlalchemy import and_, case, delete, select, update
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability import AvailabilitySlot
from reservations.errors import AvailabilityConflict
from reservations.transaction import atomic
from utils.dates import month_bounds, normalize_trip_date, utc_today

logger = logging.getLogger(__name__)


def _ledger_row(charter_id: int, day):
    return and_(AvailabilitySlot.charter_id == charter_id, AvailabilitySlot.date == day)


def check_availability(charter_id: int, day, requested_slots: int = 1, for_update: bool = False) -> bool:
    """
    True when the (charter, day) ledger row has at least ``requested_slots``
    free. A missing row means not available.

    Pass ``for_update=True`` from inside a booking transaction to take the
    row lock up front (PostgreSQL/MySQL; ignored by SQLite).
    """
    if requested_slots < 1:
        raise ValueError("requested_slots must be >= 1")
    day = normalize_trip_date(day)

    stmt = select(AvailabilitySlot.slots, AvailabilitySlot.booked_slots).where(_ledger_row(charter_id, day))
    if for_update:
        stmt = stmt.with_for_update()

    row = db.session.execute(stmt).first()
    if row is None:
        return False
    return row.slots - row.booked_slots >= requested_slots


def update_availability_slots(charter_id: int, day, slots_to_consume: int = 1) -> bool:
    """
    Consume capacity only if it still fits at write time:
    UPDATE ... SET booked_slots = booked_slots + N WHERE booked_slots + N <= slots.

    Returns False and changes nothing when the row is full or missing.
    Does not commit.
    """
    if slots_to_consume < 1:
        raise ValueError("slots_to_consume must be >= 1")
    day = normalize_trip_date(day)

    stmt = (
        update(AvailabilitySlot)
        .where(
            _ledger_row(charter_id, day),
            AvailabilitySlot.booked_slots + slots_to_consume <= AvailabilitySlot.slots,
        )
        .values(booked_slots=AvailabilitySlot.booked_slots + slots_to_consume)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def release_slot(charter_id: int, day, slots_to_release: int = 1) -> None:
    """Give capacity back, floored at zero. Does not commit."""
    if slots_to_release < 1:
        raise ValueError("slots_to_release must be >= 1")
    day = normalize_trip_date(day)

    remaining = AvailabilitySlot.booked_slots - slots_to_release
    stmt = (
        update(AvailabilitySlot)
        .where(_ledger_row(charter_id, day))
        .values(booked_slots=case((remaining < 0, 0), else_=remaining))
        .execution_options(synchronize_session=False)
    )
    if db.session.execute(stmt).rowcount == 0:
        logger.warning("release_slot: no ledger row for charter=%s date=%s", charter_id, day)


# ---------- ledger management ----------

def get_availability(charter_id: int, month: str):
    start, end = month_bounds(month)
    return (
        AvailabilitySlot.query
        .filter(
            AvailabilitySlot.charter_id == charter_id,
            AvailabilitySlot.date >= start,
            AvailabilitySlot.date < end,
        )
        .order_by(AvailabilitySlot.date.asc())
        .all()
    )


def create_availability(charter_id: int, day, slots: int) -> AvailabilitySlot:
    if slots < 1:
        raise ValueError("slots must be >= 1")
    day = normalize_trip_date(day)
    with atomic("create_availability", charter_id=charter_id, trip_date=day):
        row = AvailabilitySlot(charter_id=charter_id, date=day, slots=slots, booked_slots=0)
        db.session.add(row)
        try:
            db.session.flush()
        except IntegrityError:
            raise AvailabilityConflict(f"Availability already exists for charter {charter_id} on {day}") from None
    return row


def resize_availability(slot_id: int, slots: int) -> bool:
    """Change total capacity; refuses to shrink below what is already booked."""
    if slots < 1:
        raise ValueError("slots must be >= 1")
    with atomic("resize_availability", slot_id=slot_id):
        result = db.session.execute(
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.booked_slots <= slots)
            .values(slots=slots)
            .execution_options(synchronize_session=False)
        )
    return result.rowcount == 1


def delete_availability(slot_id: int) -> bool:
    """Delete a ledger row, but only while nothing is booked against it."""
    with atomic("delete_availability", slot_id=slot_id):
        result = db.session.execute(
            delete(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.booked_slots == 0)
            .execution_options(synchronize_session=False)
        )
    return result.rowcount == 1


def seed_availability_window(charter_id: int, days: int, slots: int, start=None) -> int:
    """
    Pre-seed ``days`` consecutive dates starting at ``start`` (today by
    default). Dates that already have a row are left alone. Returns the
    number of rows created.
    """
    if days < 1 or slots < 1:
        raise ValueError("days and slots must be >= 1")
    first = normalize_trip_date(start) if start is not None else utc_today()
    wanted = [first + timedelta(days=i) for i in range(days)]

    with atomic("seed_availability_window", charter_id=charter_id, trip_date=first):
        existing = {
            d for (d,) in db.session.execute(
                select(AvailabilitySlot.date).where(
                    AvailabilitySlot.charter_id == charter_id,
                    AvailabilitySlot.date >= wanted[0],
                    AvailabilitySlot.date <= wanted[-1],
                )
            )
        }
        missing = [d for d in wanted if d not in existing]
        for d in missing:
            db.session.add(AvailabilitySlot(charter_id=charter_id, date=d, slots=slots, booked_slots=0))
        try:
            db.session.flush()
        except IntegrityError:
            raise AvailabilityConflict(f"Availability window for charter {charter_id} changed while seeding") from None

    logger.info("Seeded %d availability rows for charter %s from %s", len(missing), charter_id, first)
    return len(missing)
