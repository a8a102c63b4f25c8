from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.availability import AvailabilitySlot
from models.charter import Charter
from reservations import (
    AvailabilityConflict,
    BookingTimeout,
    TransactionAborted,
    create_availability,
    delete_availability,
    get_availability,
    resize_availability,
    seed_availability_window,
)
from security.rbac import require_roles, owns_charter
from utils.audit import log_event
from utils.http import busy_response
from utils.dates import normalize_trip_date, utc_today
from utils.validation import positive_int

availability_bp = Blueprint("availability", __name__, url_prefix="/availability")


def _owned_slot(slot_id: int):
    slot = db.session.get(AvailabilitySlot, slot_id)
    if not slot:
        return None
    charter = db.session.get(Charter, slot.charter_id)
    return slot if owns_charter(charter) else None


# ---------- PUBLIC: calendar for a month ----------
@availability_bp.get("")
def list_availability():
    charter_id = positive_int(request.args.get("charter_id"))
    month = request.args.get("month")
    if not charter_id or not month:
        return jsonify(error="charter_id and month are required"), 400

    try:
        rows = get_availability(charter_id, month)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    return jsonify([r.to_dict() for r in rows]), 200


# ---------- CAPTAIN: manage the ledger ----------
@availability_bp.post("")
@require_roles("CAPTAIN")
def add_availability():
    data = request.get_json(silent=True) or {}
    charter_id = positive_int(data.get("charter_id"))
    slots = positive_int(data.get("slots", current_app.config.get("DEFAULT_DAILY_SLOTS", 1)))
    if charter_id is None or slots is None:
        return jsonify(error="charter_id and a positive slots count are required"), 400

    try:
        day = normalize_trip_date(data.get("date") or "")
    except ValueError:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400
    if day < utc_today():
        return jsonify(error="Cannot open availability in the past"), 400

    charter = db.session.get(Charter, charter_id)
    if not charter or not owns_charter(charter):
        return jsonify(error="Charter not found"), 404

    try:
        row = create_availability(charter_id, day, slots)
    except AvailabilityConflict:
        return jsonify(error="Availability already exists for that date"), 409
    except BookingTimeout as exc:
        return busy_response(exc)
    except TransactionAborted:
        return jsonify(error="Failed to create availability"), 500

    log_event("AVAILABILITY_CREATE", user_id=g.user.id, entity="availability", entity_id=row.id,
              metadata={"charter_id": charter_id, "date": day.isoformat(), "slots": slots})
    return jsonify(row.to_dict()), 201


@availability_bp.post("/seed")
@require_roles("CAPTAIN")
def seed_window():
    data = request.get_json(silent=True) or {}
    charter_id = positive_int(data.get("charter_id"))
    days = positive_int(data.get("days", current_app.config.get("AVAILABILITY_WINDOW_DAYS", 30)))
    slots = positive_int(data.get("slots", current_app.config.get("DEFAULT_DAILY_SLOTS", 1)))
    if charter_id is None or days is None or slots is None:
        return jsonify(error="charter_id, days and slots must be positive integers"), 400
    if days > 366:
        return jsonify(error="days must be at most 366"), 400

    charter = db.session.get(Charter, charter_id)
    if not charter or not owns_charter(charter):
        return jsonify(error="Charter not found"), 404

    try:
        created = seed_availability_window(charter_id, days, slots)
    except AvailabilityConflict:
        return jsonify(error="Availability changed while seeding, retry"), 409
    except BookingTimeout as exc:
        return busy_response(exc)
    except TransactionAborted:
        return jsonify(error="Failed to seed availability"), 500

    log_event("AVAILABILITY_SEED", user_id=g.user.id, entity="charter", entity_id=charter_id,
              metadata={"days": days, "slots": slots, "created": created})
    return jsonify(created=created), 201


@availability_bp.post("/<int:slot_id>/resize")
@require_roles("CAPTAIN")
def resize(slot_id: int):
    data = request.get_json(silent=True) or {}
    slots = positive_int(data.get("slots"))
    if slots is None:
        return jsonify(error="slots must be a positive integer"), 400

    if not _owned_slot(slot_id):
        return jsonify(error="Availability not found"), 404

    try:
        resized = resize_availability(slot_id, slots)
    except BookingTimeout as exc:
        return busy_response(exc)
    except TransactionAborted:
        return jsonify(error="Failed to update availability"), 500
    if not resized:
        return jsonify(error="Cannot shrink below slots already booked"), 409

    row = db.session.get(AvailabilitySlot, slot_id)
    log_event("AVAILABILITY_RESIZE", user_id=g.user.id, entity="availability", entity_id=slot_id,
              metadata={"slots": slots})
    return jsonify(row.to_dict()), 200


@availability_bp.delete("/<int:slot_id>")
@require_roles("CAPTAIN")
def remove(slot_id: int):
    if not _owned_slot(slot_id):
        return jsonify(error="Availability not found"), 404

    try:
        deleted = delete_availability(slot_id)
    except BookingTimeout as exc:
        return busy_response(exc)
    except TransactionAborted:
        return jsonify(error="Failed to delete availability"), 500
    if not deleted:
        return jsonify(error="Availability has active bookings"), 409

    log_event("AVAILABILITY_DELETE", user_id=g.user.id, entity="availability", entity_id=slot_id)
    return jsonify(message="Deleted"), 200
