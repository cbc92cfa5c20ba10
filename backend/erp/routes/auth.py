# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/erp/routes/auth.py
"""
Authentication API routes

- Sign-in is limited to the single configured account
- Every attempt is logged to loginLogs, every sign-out to logoutLogs
- Repeated failures are throttled
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services.registry import get_services
from ..services.auth_service import AuthError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    The token must be sent as `Authorization: Bearer <token>` on every
    other API route.
    """
    try:
        data = request.get_json(silent=True) or {}
        result = get_services().auth.sign_in(
            data.get("email"),
            data.get("password"),
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify({**result, "message": "Login successful"}), 200

    except AuthError as e:
        return jsonify({"error": str(e), "code": e.code}), e.status
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        get_services().auth.sign_out(
            g.session_token,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify({"message": "Logged out"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
