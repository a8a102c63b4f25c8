from datetime import datetime, time

from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.booking import Booking, BookingStatus
from models.charter import Charter
from reservations import (
    BookingNotFound,
    BookingTimeout,
    InvalidTransition,
    NoAvailability,
    TransactionAborted,
    book_slot,
    cancel_booking,
    update_booking_status,
)
from security.rbac import require_roles, owns_charter
from utils.audit import log_event
from utils.auth_context import login_required
from utils.dates import normalize_trip_date, utc_today
from utils.http import busy_response
from utils.validation import clean_text, parse_price, positive_int

booking_bp = Blueprint("booking", __name__)


def _parse_booking_payload(data: dict):
    errors = {}

    charter_id = positive_int(data.get("charter_id"))
    if charter_id is None:
        errors["charter_id"] = "positive integer required"

    trip_date = None
    try:
        trip_date = normalize_trip_date(data.get("trip_date") or "")
    except ValueError:
        errors["trip_date"] = "use YYYY-MM-DD"

    guests = positive_int(data.get("guests"))
    if guests is None:
        errors["guests"] = "positive integer required"

    total_price = parse_price(data.get("total_price"))
    if total_price is None:
        errors["total_price"] = "positive amount required"

    message = data.get("message")
    if message is not None and not isinstance(message, str):
        errors["message"] = "must be a string"

    return {
        "charter_id": charter_id,
        "trip_date": trip_date,
        "guests": guests,
        "total_price": total_price,
        "message": clean_text(message, 2000),
    }, errors


def _transition_error(exc: Exception):
    if isinstance(exc, BookingNotFound):
        return jsonify(error="Booking not found"), 404
    if isinstance(exc, InvalidTransition):
        return jsonify(error=str(exc), status=exc.current), 409
    if isinstance(exc, BookingTimeout):
        return busy_response(exc)
    return jsonify(error="Failed to update booking"), 500


# ---------- USERS: request a trip (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
@login_required
def create_booking():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(error="JSON object body required"), 400

    fields, errors = _parse_booking_payload(data)
    if errors:
        return jsonify(error="Invalid booking data", details=errors), 400
    if fields["trip_date"] < utc_today():
        return jsonify(error="Cannot book past dates"), 400

    charter = db.session.get(Charter, fields["charter_id"])
    if not charter or not charter.is_bookable:
        return jsonify(error="Charter not found"), 404
    if fields["guests"] > charter.max_guests:
        return jsonify(error=f"This charter takes at most {charter.max_guests} guests"), 400

    try:
        booking = book_slot(
            g.user.id,
            charter.id,
            fields["trip_date"],
            fields["guests"],
            fields["total_price"],
            message=fields["message"],
        )
    except NoAvailability as exc:
        log_event("BOOKING_FAIL_NO_AVAILABILITY", user_id=g.user.id, entity="charter", entity_id=charter.id,
                  metadata={"trip_date": fields["trip_date"].isoformat()})
        return jsonify(error=str(exc), reason=exc.reason), 409
    except BookingTimeout as exc:
        log_event("BOOKING_FAIL_TIMEOUT", user_id=g.user.id, entity="charter", entity_id=charter.id,
                  metadata={"trip_date": fields["trip_date"].isoformat()})
        return busy_response(exc)
    except TransactionAborted:
        return jsonify(error="Failed to create booking"), 500

    log_event("BOOKING_CREATE", user_id=g.user.id, entity="booking", entity_id=booking.id,
              metadata={"charter_id": charter.id, "trip_date": fields["trip_date"].isoformat()})
    return jsonify(booking.to_dict()), 201


# ---------- USERS / CAPTAINS: cancel (releases the slot) ----------
@booking_bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = clean_text(data.get("reason"), 120)

    booking = db.session.get(Booking, booking_id)
    if not booking:
        return jsonify(error="Booking not found"), 404

    is_captain = owns_charter(booking.charter)
    if booking.user_id != g.user.id and not is_captain:
        return jsonify(error="Booking not found"), 404

    if not is_captain:
        cutoff_hours = current_app.config.get("CANCEL_CUTOFF_HOURS", 24)
        trip_start = datetime.combine(booking.trip_date, time.min)
        if (trip_start - datetime.utcnow()).total_seconds() < cutoff_hours * 3600:
            return jsonify(error=f"Cancellation not allowed within {cutoff_hours} hours of the trip"), 403

    try:
        booking = cancel_booking(booking_id, reason=reason)
    except (BookingNotFound, InvalidTransition, BookingTimeout, TransactionAborted) as exc:
        return _transition_error(exc)

    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking_id,
              metadata={"reason": reason, "by_captain": is_captain})
    return jsonify(booking.to_dict()), 200


# ---------- CAPTAINS: confirm / complete / cancel ----------
@booking_bp.post("/bookings/<int:booking_id>/status")
@require_roles("CAPTAIN")
def set_status(booking_id: int):
    data = request.get_json(silent=True) or {}
    new_status = data.get("status")
    new_status = new_status.strip().lower() if isinstance(new_status, str) else ""
    if new_status not in BookingStatus.TRANSITIONS:
        return jsonify(error="status must be confirmed, completed or cancelled"), 400

    booking = db.session.get(Booking, booking_id)
    if not booking or not owns_charter(booking.charter):
        return jsonify(error="Booking not found"), 404

    try:
        booking = update_booking_status(booking_id, new_status, reason=clean_text(data.get("reason"), 120))
    except (BookingNotFound, InvalidTransition, BookingTimeout, TransactionAborted) as exc:
        return _transition_error(exc)

    log_event("BOOKING_STATUS_UPDATE", user_id=g.user.id, entity="booking", entity_id=booking_id,
              metadata={"status": new_status})
    return jsonify(booking.to_dict()), 200


# ---------- USERS: my trips ----------
@booking_bp.get("/bookings/me")
@login_required
def my_bookings():
    status = request.args.get("status")
    q = Booking.query.filter_by(user_id=g.user.id)
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.created_at.desc()).all()
    charters = {c.id: c for c in Charter.query.filter(Charter.id.in_([b.charter_id for b in rows])).all()}

    out = []
    for b in rows:
        item = b.to_dict()
        c = charters.get(b.charter_id)
        item["charter"] = {"id": b.charter_id, "title": c.title if c else None, "location": c.location if c else None}
        out.append(item)
    return jsonify(out), 200


# ---------- CAPTAINS: bookings on my charters ----------
@booking_bp.get("/captain/bookings")
@require_roles("CAPTAIN")
def captain_bookings():
    status = request.args.get("status")
    date_str = request.args.get("date")  # YYYY-MM-DD

    q = (
        Booking.query
        .join(Charter, Booking.charter_id == Charter.id)
        .filter(Charter.captain_id == g.user.id)
    )
    if status:
        q = q.filter(Booking.status == status)
    if date_str:
        try:
            q = q.filter(Booking.trip_date == normalize_trip_date(date_str))
        except ValueError:
            return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    rows = q.order_by(Booking.trip_date.asc(), Booking.created_at.asc()).limit(200).all()
    return jsonify([b.to_dict() for b in rows]), 200
