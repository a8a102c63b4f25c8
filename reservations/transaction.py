import logging
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from models import db
from reservations.errors import BookingError, BookingTimeout, TransactionAborted

logger = logging.getLogger(__name__)

# lock_not_available (lock_timeout) and query_canceled (statement_timeout)
_PG_TIMEOUT_CODES = {"55P03", "57014"}
_TIMEOUT_MARKERS = ("database is locked", "lock wait timeout exceeded", "lock timeout")


def is_lock_timeout(exc: OperationalError) -> bool:
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _PG_TIMEOUT_CODES:
        return True
    message = str(orig if orig is not None else exc).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def bound_lock_wait():
    """Cap how long the current transaction may wait on a row or database lock."""
    timeout_ms = int(current_app.config.get("BOOKING_LOCK_TIMEOUT_MS", 1500))
    dialect = db.session.get_bind().dialect.name
    if dialect == "postgresql":
        # SET LOCAL takes no bind parameters; timeout_ms is an int
        db.session.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
    elif dialect == "sqlite":
        db.session.execute(text(f"PRAGMA busy_timeout = {timeout_ms}"))


@contextmanager
def atomic(operation: str, **context):
    """
    Run the block as one unit of work on ``db.session``: commit when it
    finishes, roll everything back when anything inside raises.

    Database failures are translated into ``BookingTimeout`` (lock wait
    exceeded) or ``TransactionAborted`` (anything else).
    """
    try:
        bound_lock_wait()
        yield
        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise
    except OperationalError as exc:
        db.session.rollback()
        if is_lock_timeout(exc):
            logger.warning("%s timed out waiting for a lock %s", operation, context)
            raise BookingTimeout(
                charter_id=context.get("charter_id"),
                trip_date=context.get("trip_date"),
            ) from exc
        logger.exception("%s aborted %s", operation, context)
        raise TransactionAborted(f"{operation} failed") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("%s aborted %s", operation, context)
        raise TransactionAborted(f"{operation} failed") from exc
    except Exception:
        db.session.rollback()
        raise
