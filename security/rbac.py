from functools import wraps
from flask import g, jsonify

def owns_charter(charter) -> bool:
    """Captain of the charter, or an admin."""
    user = getattr(g, "user", None)
    if user is None or charter is None:
        return False
    return charter.captain_id == user.id or user.has_role("ADMIN")

def require_roles(*role_names: str):
    """
    Usage: @require_roles("CAPTAIN")
    ADMIN passes every role check.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            user_roles = {r.name for r in user.roles}
            if "ADMIN" not in user_roles and not user_roles.intersection(role_names):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
