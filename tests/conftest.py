"""Shared fixtures: a fresh SQLite file database per test and small data builders."""
import sqlite3
from contextlib import contextmanager
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import make_url

from app import create_app
from models import db
from models.availability import AvailabilitySlot
from models.booking import Booking
from models.charter import Charter
from models.user import User
from security.password import hash_password
from utils.dates import utc_today
from utils.seed import grant_role

PASSWORD = "Passw0rd!"


@pytest.fixture()
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "CREATE_TABLES_ON_STARTUP": True,
        "BCRYPT_ROUNDS": 4,
        "BOOKING_LOCK_TIMEOUT_MS": 5000,
        "LOG_LEVEL": "WARNING",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield
        db.session.rollback()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def trip_day():
    """A date comfortably outside the cancellation cutoff."""
    return utc_today() + timedelta(days=10)


class Builder:
    """Creates rows in their own app context and hands back ids."""

    def __init__(self, app):
        self.app = app

    def user(self, email, *roles):
        with self.app.app_context():
            user = User(email=email, password_hash=hash_password(PASSWORD, rounds=4))
            db.session.add(user)
            db.session.commit()
            for role in roles:
                grant_role(user, role)
            return user.id

    def charter(self, captain_id, max_guests=6, price="200.00", **fields):
        with self.app.app_context():
            charter = Charter(
                captain_id=captain_id,
                title=fields.pop("title", "Offshore Tuna Run"),
                location=fields.pop("location", "Test Harbor"),
                max_guests=max_guests,
                price=price,
                **fields,
            )
            db.session.add(charter)
            db.session.commit()
            return charter.id

    def slot(self, charter_id, day, slots=1, booked=0):
        with self.app.app_context():
            row = AvailabilitySlot(charter_id=charter_id, date=day, slots=slots, booked_slots=booked)
            db.session.add(row)
            db.session.commit()
            return row.id

    def ledger(self, charter_id, day):
        """(slots, booked_slots) for the ledger row, read fresh."""
        with self.app.app_context():
            row = db.session.execute(
                select(AvailabilitySlot.slots, AvailabilitySlot.booked_slots)
                .where(AvailabilitySlot.charter_id == charter_id, AvailabilitySlot.date == day)
            ).one()
            return row.slots, row.booked_slots

    def booking_count(self, charter_id, status=None):
        with self.app.app_context():
            stmt = select(func.count(Booking.id)).where(Booking.charter_id == charter_id)
            if status:
                stmt = stmt.where(Booking.status == status)
            return db.session.execute(stmt).scalar_one()

    def booking_status(self, booking_id):
        with self.app.app_context():
            return db.session.get(Booking, booking_id).status


@pytest.fixture()
def build(app):
    return Builder(app)


@pytest.fixture()
def hold_write_lock(app):
    """Context manager holding the database write lock from a separate connection."""
    @contextmanager
    def hold(timeout_ms=200):
        app.config["BOOKING_LOCK_TIMEOUT_MS"] = timeout_ms
        holder = sqlite3.connect(make_url(app.config["SQLALCHEMY_DATABASE_URI"]).database, isolation_level=None)
        holder.execute("BEGIN IMMEDIATE")
        try:
            yield
        finally:
            holder.execute("ROLLBACK")
            holder.close()
    return hold


@pytest.fixture()
def captain_charter(build):
    """(captain_id, charter_id) for a listed charter taking up to 6 guests."""
    captain_id = build.user("captain@example.com", "CAPTAIN")
    return captain_id, build.charter(captain_id)


def login(client, email):
    """Log in and return the CSRF header the session needs for writes."""
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200
    return {"X-CSRF-Token": client.get_cookie("csrf_token").value}
