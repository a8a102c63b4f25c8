import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite file next to the app unless DATABASE_URL points at PostgreSQL
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "charterbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Create tables at startup instead of running migrations (tests / local demo)
    CREATE_TABLES_ON_STARTUP = _env_bool("CREATE_TABLES_ON_STARTUP", "false")

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "charterbook_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 30 minutes
    IDLE_TIMEOUT_SECONDS = 30 * 60

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", "false")

    PASSWORD_MIN_LEN = 8
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Cancellation policy (users only; captains and admins may cancel any time)
    CANCEL_CUTOFF_HOURS = int(os.getenv("CANCEL_CUTOFF_HOURS", "24"))

    # Booking concurrency
    BOOKING_LOCK_TIMEOUT_MS = int(os.getenv("BOOKING_LOCK_TIMEOUT_MS", "1500"))
    BOOKING_RETRY_AFTER_SECONDS = int(os.getenv("BOOKING_RETRY_AFTER_SECONDS", "1"))
    SLOTS_PER_BOOKING = 1  # each booking takes one slot, whatever the guest count

    # Availability ledger defaults
    AVAILABILITY_WINDOW_DAYS = int(os.getenv("AVAILABILITY_WINDOW_DAYS", "30"))
    DEFAULT_DAILY_SLOTS = int(os.getenv("DEFAULT_DAILY_SLOTS", "1"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DEBUG = False
