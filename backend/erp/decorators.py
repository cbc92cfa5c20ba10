# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services.registry import get_services


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid session token.

    Sets on Flask g:
    - g.current_user: the signed-in Identity
    - g.session_token: the plaintext bearer token of this request

    Returns 401 when the Authorization header is missing or the token is
    unknown, revoked or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        identity = get_services().auth.validate_session(token)
        if identity is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = identity
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function
