# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- Every attempt against a known account is written to login_history
- Opaque bearer tokens, stored hashed, revocable on logout
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Accepts username or email. The token must be sent as
    "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not identifier or not password:
            return jsonify({"success": False, "message": "username/email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        result = auth_service.authenticate(str(identifier), str(password))

        if result.user is not None:
            auth_service.record_login(
                result.user,
                success=result.ok,
                ip_address=ip_address,
                user_agent=user_agent,
            )

        if result.status == "inactive":
            return jsonify({"success": False, "message": "Account is deactivated"}), 403
        if not result.ok:
            return jsonify({"success": False, "message": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=result.user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )

        return jsonify({
            "success": True,
            "data": {
                "user": result.user.to_dict(),
                "token": token,
                "session": session.to_dict(),
            },
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"success": False, "message": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token used for this request."""
    session_service.revoke_session(g.session_token, reason="User logout")
    return jsonify({"success": True, "message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"success": True, "data": g.current_user.to_dict()}), 200
