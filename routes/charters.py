from flask import Blueprint, request, jsonify, g

from models import db
from models.charter import Charter
from security.rbac import require_roles, owns_charter
from utils.audit import log_event
from utils.validation import clean_text, parse_price, positive_int

charters_bp = Blueprint("charters", __name__, url_prefix="/charters")


@charters_bp.post("")
@require_roles("CAPTAIN")
def create_charter():
    data = request.get_json(silent=True) or {}
    title = clean_text(data.get("title"), 160)
    location = clean_text(data.get("location"), 160)
    max_guests = positive_int(data.get("max_guests"))
    price = parse_price(data.get("price"))

    if not title or not location:
        return jsonify(error="title and location are required"), 400
    if max_guests is None:
        return jsonify(error="max_guests must be a positive integer"), 400
    if price is None:
        return jsonify(error="price must be a positive amount"), 400

    charter = Charter(
        captain_id=g.user.id,
        title=title,
        location=location,
        description=clean_text(data.get("description"), 5000),
        target_species=clean_text(data.get("target_species"), 160),
        duration=clean_text(data.get("duration"), 40),
        max_guests=max_guests,
        price=price,
    )
    db.session.add(charter)
    db.session.commit()

    log_event("CHARTER_CREATE", user_id=g.user.id, entity="charter", entity_id=charter.id)
    return jsonify(charter.to_dict()), 201


@charters_bp.get("")
def list_charters():
    location_query = (request.args.get("location") or "").strip()
    species_query = (request.args.get("species") or "").strip()

    q = Charter.query.filter(Charter.is_listed.is_(True))
    if location_query:
        q = q.filter(Charter.location.ilike(f"%{location_query}%"))
    if species_query:
        q = q.filter(Charter.target_species.ilike(f"%{species_query}%"))

    rows = q.order_by(Charter.created_at.desc()).limit(200).all()
    return jsonify([c.to_dict() for c in rows]), 200


@charters_bp.get("/<int:charter_id>")
def get_charter(charter_id: int):
    charter = db.session.get(Charter, charter_id)
    if not charter or not charter.is_listed:
        return jsonify(error="Charter not found"), 404
    return jsonify(charter.to_dict()), 200


@charters_bp.get("/me")
@require_roles("CAPTAIN")
def my_charters():
    rows = (
        Charter.query
        .filter_by(captain_id=g.user.id)
        .order_by(Charter.created_at.desc())
        .all()
    )
    return jsonify([c.to_dict() for c in rows]), 200


@charters_bp.post("/<int:charter_id>/listing")
@require_roles("CAPTAIN")
def update_listing(charter_id: int):
    data = request.get_json(silent=True) or {}
    charter = db.session.get(Charter, charter_id)
    if not charter or not owns_charter(charter):
        return jsonify(error="Charter not found"), 404

    for field in ("is_listed", "available"):
        if field in data:
            if not isinstance(data[field], bool):
                return jsonify(error=f"{field} must be a boolean"), 400
            setattr(charter, field, data[field])

    db.session.commit()
    log_event(
        "CHARTER_LISTING_UPDATE",
        user_id=g.user.id,
        entity="charter",
        entity_id=charter.id,
        metadata={"is_listed": charter.is_listed, "available": charter.available},
    )
    return jsonify(charter.to_dict()), 200
