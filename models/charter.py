from datetime import datetime
from models.db import db

class Charter(db.Model):
    __tablename__ = "charters"

    id = db.Column(db.Integer, primary_key=True)
    captain_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(160), nullable=False)
    target_species = db.Column(db.String(160), nullable=True)
    duration = db.Column(db.String(40), nullable=True)  # free text, e.g. "4 hours"

    max_guests = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)

    is_listed = db.Column(db.Boolean, default=True, nullable=False)
    available = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    captain = db.relationship("User", back_populates="charters")

    __table_args__ = (
        db.CheckConstraint("max_guests > 0", name="ck_charters_max_guests_positive"),
    )

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_listed and self.available)

    def to_dict(self):
        return {
            "id": self.id,
            "captain_id": self.captain_id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "target_species": self.target_species,
            "duration": self.duration,
            "max_guests": self.max_guests,
            "price": str(self.price),
            "is_listed": self.is_listed,
            "available": self.available,
        }
