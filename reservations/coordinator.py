"""
Booking transaction coordinator.

Every operation here is one unit of work: the availability check, the
booking row and the ledger update commit together or not at all.
"""
import logging
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import select, update

from models import db
from models.booking import Booking, BookingStatus
from reservations.availability import check_availability, release_slot, update_availability_slots
from reservations.errors import BookingNotFound, InvalidTransition, NoAvailability
from reservations.transaction import atomic
from utils.dates import normalize_trip_date

logger = logging.getLogger(__name__)


def _slots_per_booking() -> int:
    # One slot per booking regardless of guest count
    return int(current_app.config.get("SLOTS_PER_BOOKING", 1))


def _load_for_update(booking_id: int) -> Booking:
    stmt = (
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    booking = db.session.execute(stmt).scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


def _move_status(booking: Booking, target: str, **values) -> None:
    """Conditional status write; only succeeds from an allowed source status."""
    result = db.session.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.status.in_(BookingStatus.TRANSITIONS[target]))
        .values(status=target, **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidTransition(booking.id, booking.status, target)


def book_slot(user_id: int, charter_id: int, trip_date, guests: int, total_price,
              message=None, status: str = BookingStatus.PENDING) -> Booking:
    """
    Reserve capacity on ``trip_date`` and create the booking for it.

    Raises ``NoAvailability`` when the date has no ledger row or is full,
    ``BookingTimeout`` when the ledger row stayed locked past
    ``BOOKING_LOCK_TIMEOUT_MS`` and ``TransactionAborted`` on any other
    database failure. In all three cases nothing is left behind.
    """
    if status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        raise ValueError(f"New bookings start as pending or confirmed, not {status}")
    if guests < 1:
        raise ValueError("guests must be >= 1")

    day = normalize_trip_date(trip_date)
    slots = _slots_per_booking()

    with atomic("book_slot", charter_id=charter_id, trip_date=day, user_id=user_id):
        if not check_availability(charter_id, day, slots, for_update=True):
            raise NoAvailability(charter_id=charter_id, trip_date=day)

        booking = Booking(
            user_id=user_id,
            charter_id=charter_id,
            trip_date=day,
            guests=guests,
            total_price=Decimal(str(total_price)),
            status=status,
            message=message,
            slots_reserved=slots,
        )
        db.session.add(booking)
        db.session.flush()

        # Authoritative re-check; a concurrent winner may have taken the slot
        if not update_availability_slots(charter_id, day, slots):
            raise NoAvailability(charter_id=charter_id, trip_date=day)

    logger.info("Booking %s reserved charter=%s date=%s user=%s", booking.id, charter_id, day, user_id)
    return booking


def cancel_booking(booking_id: int, reason=None) -> Booking:
    """Cancel a pending/confirmed booking and hand its slots back to the ledger."""
    with atomic("cancel_booking", booking_id=booking_id):
        booking = _load_for_update(booking_id)
        _move_status(
            booking,
            BookingStatus.CANCELLED,
            cancelled_at=datetime.utcnow(),
            cancel_reason=reason,
        )
        release_slot(booking.charter_id, booking.trip_date, booking.slots_reserved)

    logger.info("Booking %s cancelled, released %s slot(s)", booking_id, booking.slots_reserved)
    return booking


def update_booking_status(booking_id: int, new_status: str, reason=None) -> Booking:
    if new_status == BookingStatus.CANCELLED:
        return cancel_booking(booking_id, reason=reason)
    if new_status not in BookingStatus.TRANSITIONS:
        raise InvalidTransition(booking_id, None, new_status)

    with atomic("update_booking_status", booking_id=booking_id):
        booking = _load_for_update(booking_id)
        _move_status(booking, new_status)

    logger.info("Booking %s moved to %s", booking_id, new_status)
    return booking
