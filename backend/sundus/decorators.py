# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_token: The plaintext token from the request (for logout)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated or deleted
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"success": False, "message": "Authentication required"}), 401

        user = session_service.validate_session(token)
        if not user:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        g.current_user = user
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Attach the user when a valid token is present; never rejects.

    Used by public endpoints (online checkout) that behave slightly
    differently for signed-in staff.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        token = _bearer_token()
        if token:
            g.current_user = session_service.validate_session(token)
            g.session_token = token if g.current_user else None
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require one of the given roles. Must be stacked under @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"success": False, "message": "Authentication required"}), 401

            if g.current_user.role not in roles:
                return jsonify({
                    "success": False,
                    "message": "You do not have permission to perform this action",
                    "requiredRoles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
