import logging

import click
from flask import Flask, request, g
from flask_migrate import Migrate

from config import Config
from models import db
from models.charter import Charter
from models.user import User
from reservations import BookingError, seed_availability_window
from routes import health_bp, auth_bp, charters_bp, availability_bp, booking_bp
from security.csrf import require_csrf
from utils.auth_context import load_current_user
from utils.seed import seed_roles, grant_role

CSRF_EXEMPT_PATHS = {
    "/auth/login",
    "/auth/register",
    "/health",
}


def configure_logging(app):
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(charters_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(booking_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Seed default roles at startup (idempotent)
    with app.app_context():
        if app.config.get("CREATE_TABLES_ON_STARTUP"):
            db.create_all()
        seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        # Only state-changing requests from an authenticated (cookie) session
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if request.path in CSRF_EXEMPT_PATHS:
                return None
            if getattr(g, "user", None) is not None:
                failure = require_csrf()
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app


def _promote(email: str, role_name: str):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user:
        click.echo("User not found")
        return
    if grant_role(user, role_name):
        click.echo(f"{user.email} promoted to {role_name}")
    else:
        click.echo(f"{user.email} already has {role_name}")


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        _promote(email, "ADMIN")

    @app.cli.command("make-captain")
    @click.argument("email")
    def make_captain(email):
        """Give a user the CAPTAIN role by email."""
        _promote(email, "CAPTAIN")

    @app.cli.command("seed-availability")
    @click.argument("charter_id", type=int)
    @click.option("--days", type=click.IntRange(1, 366), default=None, help="Length of the rolling window.")
    @click.option("--slots", type=click.IntRange(1), default=None, help="Bookable slots per day.")
    def seed_availability(charter_id, days, slots):
        """Open a rolling window of bookable dates for a charter, starting today."""
        if not db.session.get(Charter, charter_id):
            raise click.ClickException(f"Charter {charter_id} not found")

        days = days or app.config["AVAILABILITY_WINDOW_DAYS"]
        slots = slots or app.config["DEFAULT_DAILY_SLOTS"]
        try:
            created = seed_availability_window(charter_id, days, slots)
        except BookingError as exc:
            raise click.ClickException(str(exc))
        click.echo(f"Created {created} availability rows for charter {charter_id}")


if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5002)
