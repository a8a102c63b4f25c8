from flask import current_app, jsonify


def busy_response(exc):
    """503 for a lock-wait timeout; the whole request is safe to retry."""
    retry_after = current_app.config.get("BOOKING_RETRY_AFTER_SECONDS", 1)
    resp = jsonify(error=str(exc), reason=exc.reason, retry_after_seconds=retry_after)
    resp.headers["Retry-After"] = str(retry_after)
    return resp, 503
