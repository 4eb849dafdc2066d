# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import ROLE_ADMIN, ROLE_MANAGER
from .services import session_service


MANAGER_ROLES = (ROLE_ADMIN, ROLE_MANAGER)


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid session token.

    Sets g.current_user and g.session_token for the route.

    Returns 401 if:
    - No Authorization header (MISSING_TOKEN)
    - Unknown, revoked or expired token (INVALID_TOKEN)
    - User account deactivated (INVALID_TOKEN)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Access token required", "code": "MISSING_TOKEN"}), 401

        user = session_service.validate_session(db.session, token)
        if user is None:
            return jsonify({"error": "Invalid or expired token", "code": "INVALID_TOKEN"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Require the authenticated user to hold one of `roles`. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"error": "User not authenticated", "code": "NOT_AUTHENTICATED"}), 401

            if user.role not in roles:
                return jsonify({
                    "error": "Insufficient permission",
                    "code": "INSUFFICIENT_PERMISSION",
                    "required": list(roles),
                    "current": user.role,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
