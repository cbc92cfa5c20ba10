# Overview: Service-layer operations for auth; single authorized account, sign-in logs, throttling and sessions.

"""
Authentication Service

There is exactly one authorized account, configured through AUTH_EMAIL,
AUTH_PASSWORD and AUTH_DISPLAY_NAME. Sign-in runs these checks in order:

1. the email must look like an email             -> auth/invalid-email
2. it must be the authorized email               -> auth/unauthorized
   (checked before the password is looked at)
3. fewer than MAX_FAILED_ATTEMPTS recent failures -> auth/too-many-requests
4. the password must match                        -> auth/wrong-password

Every attempt is appended to `loginLogs`, every sign-out to `logoutLogs`.

Sessions:
- 32-byte random tokens, only the SHA-256 hash is stored (under `sessions`)
- absolute expiry of SESSION_HOURS
- revoked on sign-out
"""

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
from flask import current_app

from ..schemas import LOGIN_LOGS, LOGOUT_LOGS, SESSIONS
from .document_store import Collection
from erp.time_utils import now_iso, parse_iso_datetime, to_utc_z, utcnow


MAX_FAILED_ATTEMPTS = 5
LOCKOUT_WINDOW = timedelta(minutes=15)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ERROR_MESSAGES = {
    "auth/user-not-found": "No account found with this email",
    "auth/wrong-password": "Incorrect password",
    "auth/invalid-email": "Invalid email address",
    "auth/too-many-requests": "Too many failed attempts. Please try again later",
    "auth/unauthorized": "Access denied. This account is not authorized",
}
DEFAULT_ERROR_MESSAGE = "Failed to sign in"

ERROR_STATUS = {
    "auth/user-not-found": 401,
    "auth/wrong-password": 401,
    "auth/invalid-email": 400,
    "auth/too-many-requests": 429,
    "auth/unauthorized": 403,
}


class AuthError(Exception):
    """Sign-in failure carrying a provider-style error code."""
    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or ERROR_MESSAGES.get(code, DEFAULT_ERROR_MESSAGE))

    @property
    def status(self) -> int:
        return ERROR_STATUS.get(self.code, 401)


@dataclass
class Identity:
    email: str
    display_name: str

    def to_dict(self) -> dict:
        return {"email": self.email, "name": self.display_name}


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _password_hash() -> bytes | None:
    """bcrypt hash of the configured password, computed once per app."""
    cache = current_app.extensions.setdefault("erp.auth", {})
    password = current_app.config.get("AUTH_PASSWORD") or ""
    if not password:
        return None
    if cache.get("source") != password:
        rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
        cache["hash"] = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
        cache["source"] = password
    return cache["hash"]


class AuthService:
    def __init__(self, store):
        self.login_logs = Collection(store, LOGIN_LOGS)
        self.logout_logs = Collection(store, LOGOUT_LOGS)
        self.sessions = Collection(store, SESSIONS)

    @staticmethod
    def authorized_identity() -> Identity:
        return Identity(
            email=(current_app.config.get("AUTH_EMAIL") or "").strip().lower(),
            display_name=current_app.config.get("AUTH_DISPLAY_NAME") or "Administrator",
        )

    # ----------------------------------------------------------------- logs

    def _log_attempt(self, email: str, success: bool, user_agent, ip_address, error: str | None = None) -> None:
        self.login_logs.create({
            "email": email,
            "success": success,
            "timestamp": now_iso(),
            "userAgent": user_agent or "",
            "ipAddress": ip_address or "unknown",
            "error": error,
        })

    def recent_failures(self, email: str) -> int:
        cutoff = utcnow() - LOCKOUT_WINDOW
        count = 0
        for entry in self.login_logs.all():
            if entry.get("success") or entry.get("email") != email:
                continue
            when = parse_iso_datetime(entry.get("timestamp"))
            if when and when >= cutoff:
                count += 1
        return count

    # --------------------------------------------------------------- sign in

    def sign_in(self, email: str | None, password: str | None, *, user_agent=None, ip_address=None) -> dict:
        """Validate the credentials and open a session; returns the token once."""
        email = (email or "").strip().lower()
        identity = self.authorized_identity()

        def fail(code: str):
            self._log_attempt(email, False, user_agent, ip_address, code)
            raise AuthError(code)

        if not EMAIL_RE.match(email):
            fail("auth/invalid-email")

        if not identity.email or email != identity.email:
            fail("auth/unauthorized")

        if self.recent_failures(email) >= MAX_FAILED_ATTEMPTS:
            fail("auth/too-many-requests")

        stored = _password_hash()
        if stored is None:
            fail("auth/user-not-found")
        if not bcrypt.checkpw((password or "").encode("utf-8"), stored):
            fail("auth/wrong-password")

        self._log_attempt(email, True, user_agent, ip_address)
        token = generate_token()
        now = utcnow()
        expires_at = now + timedelta(hours=current_app.config.get("SESSION_HOURS", 12))
        session_id = self.sessions.create({
            "tokenHash": hash_token(token),
            "email": identity.email,
            "expiresAt": to_utc_z(expires_at),
            "userAgent": user_agent or "",
            "ipAddress": ip_address or "unknown",
            "revoked": False,
        })
        return {
            "token": token,
            "session_id": session_id,
            "expires_at": to_utc_z(expires_at),
            "user": identity.to_dict(),
        }

    # -------------------------------------------------------------- sessions

    def _find_session(self, token: str) -> dict | None:
        token_hash = hash_token(token)
        for session in self.sessions.all():
            if session.get("tokenHash") == token_hash:
                return session
        return None

    def validate_session(self, token: str | None) -> Identity | None:
        if not token:
            return None
        session = self._find_session(token)
        if not session or session.get("revoked"):
            return None
        expires_at = parse_iso_datetime(session.get("expiresAt"))
        if expires_at is None or expires_at < utcnow():
            return None

        identity = self.authorized_identity()
        # Sessions die with a change of the configured account
        if session.get("email") != identity.email:
            return None
        return identity

    def sign_out(self, token: str, *, user_agent=None, ip_address=None) -> bool:
        session = self._find_session(token)
        if not session or session.get("revoked"):
            return False
        self.sessions.update(session["id"], {"revoked": True, "revokedAt": now_iso()})
        self.logout_logs.create({
            "email": session.get("email", ""),
            "timestamp": now_iso(),
            "userAgent": user_agent or "",
            "ipAddress": ip_address or "unknown",
        })
        return True
