from datetime import datetime
from models.db import db

class AvailabilitySlot(db.Model):
    """Capacity ledger row for one charter on one calendar day.

    ``booked_slots`` is only ever written through the conditional updates in
    ``reservations.availability``; the CHECK constraints below keep the row
    consistent even if something else tries.
    """

    __tablename__ = "availability"

    id = db.Column(db.Integer, primary_key=True)

    charter_id = db.Column(db.Integer, db.ForeignKey("charters.id"), nullable=False)
    date = db.Column(db.Date, nullable=False)

    slots = db.Column(db.Integer, nullable=False, default=1)
    booked_slots = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One ledger row per charter per day
        db.UniqueConstraint("charter_id", "date", name="uq_availability_charter_date"),
        db.CheckConstraint("slots > 0", name="ck_availability_slots_positive"),
        db.CheckConstraint("booked_slots >= 0", name="ck_availability_booked_nonneg"),
        db.CheckConstraint("booked_slots <= slots", name="ck_availability_booked_le_slots"),
    )

    @property
    def remaining(self) -> int:
        return self.slots - self.booked_slots

    def to_dict(self):
        return {
            "id": self.id,
            "charter_id": self.charter_id,
            "date": self.date.isoformat(),
            "slots": self.slots,
            "booked_slots": self.booked_slots,
            "remaining": self.remaining,
        }
