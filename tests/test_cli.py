from datetime import timedelta

from sqlalchemy import text

from models import db
from models.user import User
from utils.dates import utc_today


def _roles(app, email):
    with app.app_context():
        return sorted(r.name for r in User.query.filter_by(email=email).one().roles)


def test_make_captain(app, build):
    build.user("skipper@example.com", "USER")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["make-captain", "skipper@example.com"])
    assert "promoted to CAPTAIN" in result.output
    assert _roles(app, "skipper@example.com") == ["CAPTAIN", "USER"]

    again = runner.invoke(args=["make-captain", "skipper@example.com"])
    assert "already has CAPTAIN" in again.output


def test_make_admin_unknown_user(app):
    result = app.test_cli_runner().invoke(args=["make-admin", "ghost@example.com"])
    assert "User not found" in result.output


def test_seed_availability(app, build, captain_charter):
    _, charter_id = captain_charter
    runner = app.test_cli_runner()

    result = runner.invoke(args=["seed-availability", str(charter_id), "--days", "3", "--slots", "2"])

    assert result.exit_code == 0, result.output
    assert f"Created 3 availability rows for charter {charter_id}" in result.output
    assert build.ledger(charter_id, utc_today() + timedelta(days=2)) == (2, 0)

    # defaults come from config; the first three days already exist
    result = runner.invoke(args=["seed-availability", str(charter_id)])
    expected = app.config["AVAILABILITY_WINDOW_DAYS"] - 3
    assert f"Created {expected} availability rows" in result.output


def test_seed_availability_rejects_bad_input(app):
    runner = app.test_cli_runner()

    missing = runner.invoke(args=["seed-availability", "999"])
    assert missing.exit_code == 1
    assert "Charter 999 not found" in missing.output

    assert runner.invoke(args=["seed-availability", "1", "--days", "0"]).exit_code == 2
    with app.app_context():
        assert db.session.execute(text("SELECT COUNT(*) FROM availability")).scalar_one() == 0
