from datetime import datetime
from models.db import db


class BookingStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    ALL = (PENDING, CONFIRMED, CANCELLED, COMPLETED)
    # statuses that still hold a slot in the ledger
    ACTIVE = (PENDING, CONFIRMED)

    # allowed source statuses for each target status
    TRANSITIONS = {
        CONFIRMED: (PENDING,),
        COMPLETED: (CONFIRMED,),
        CANCELLED: (PENDING, CONFIRMED),
    }


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    charter_id = db.Column(db.Integer, db.ForeignKey("charters.id"), nullable=False, index=True)
    trip_date = db.Column(db.Date, nullable=False, index=True)

    guests = db.Column(db.Integer, nullable=False)
    total_price = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING)
    message = db.Column(db.Text, nullable=True)

    # ledger capacity taken by this booking; released as-is on cancel
    slots_reserved = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(120), nullable=True)

    charter = db.relationship("Charter")

    __table_args__ = (
        db.CheckConstraint("guests > 0", name="ck_bookings_guests_positive"),
        db.CheckConstraint("slots_reserved > 0", name="ck_bookings_slots_reserved_positive"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "charter_id": self.charter_id,
            "trip_date": self.trip_date.isoformat(),
            "guests": self.guests,
            "total_price": str(self.total_price),
            "status": self.status,
            "message": self.message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
        }
