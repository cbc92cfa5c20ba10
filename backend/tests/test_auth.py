"""
Authentication tests.

Covers the single-account sign-in, error codes, throttling, session
validation and the login/logout audit logs.
"""

from erp.services.auth_service import AuthService, hash_token
from erp.services.registry import get_services
from erp.schemas import LOGIN_LOGS, LOGOUT_LOGS
from erp.services.document_store import get_store


OWNER = {"email": "owner@shop.test", "password": "Secret123!"}


def _login(client, **overrides):
    return client.post("/api/auth/login", json={**OWNER, **overrides})


def test_login_success_and_me(client, db_session):
    response = _login(client)
    assert response.status_code == 200
    data = response.json
    assert data["message"] == "Login successful"
    assert data["user"] == {"email": "owner@shop.test", "name": "Shop Owner"}
    assert len(data["token"]) == 64

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.json["user"]["email"] == "owner@shop.test"


def test_email_is_case_insensitive(client, db_session):
    assert _login(client, email="  Owner@Shop.TEST ").status_code == 200


def test_other_account_is_unauthorized(client, db_session):
    response = _login(client, email="someone@else.test")
    assert response.status_code == 403
    assert response.json["code"] == "auth/unauthorized"
    assert response.json["error"] == "Access denied. This account is not authorized"


def test_malformed_email(client, db_session):
    response = _login(client, email="not-an-email")
    assert response.status_code == 400
    assert response.json["code"] == "auth/invalid-email"


def test_wrong_password(client, db_session):
    response = _login(client, password="nope")
    assert response.status_code == 401
    assert response.json["code"] == "auth/wrong-password"
    assert response.json["error"] == "Incorrect password"


def test_repeated_failures_are_throttled(client, db_session):
    for _ in range(5):
        assert _login(client, password="nope").status_code == 401

    response = _login(client)
    assert response.status_code == 429
    assert response.json["code"] == "auth/too-many-requests"


def test_every_attempt_is_logged(client, db_session):
    _login(client, password="nope")
    _login(client)

    logs = get_store().get_all(LOGIN_LOGS)
    assert len(logs) == 2
    assert sorted(entry["success"] for entry in logs) == [False, True]
    failed = next(entry for entry in logs if not entry["success"])
    assert failed["error"] == "auth/wrong-password"
    assert failed["ipAddress"] == "127.0.0.1"
    assert failed["email"] == "owner@shop.test"


def test_missing_token_is_rejected(client, db_session):
    response = client.get("/api/products")
    assert response.status_code == 401
    assert response.json["error"] == "Authentication required"


def test_unknown_token_is_rejected(client, db_session):
    response = client.get("/api/products", headers={"Authorization": "Bearer abc"})
    assert response.status_code == 401
    assert response.json["error"] == "Invalid or expired token"


def test_logout_revokes_session(client, headers):
    response = client.post("/api/auth/logout", headers=headers)
    assert response.status_code == 200

    assert client.get("/api/auth/me", headers=headers).status_code == 401
    logs = get_store().get_all(LOGOUT_LOGS)
    assert len(logs) == 1
    assert logs[0]["email"] == "owner@shop.test"


def test_session_stores_only_token_hash(client, db_session):
    token = _login(client).json["token"]
    sessions = get_services().auth.sessions.all()
    assert len(sessions) == 1
    assert sessions[0]["tokenHash"] == hash_token(token)
    assert token not in str(sessions[0])


def test_expired_session_is_rejected(client, db_session):
    token = _login(client).json["token"]
    auth = get_services().auth
    session = auth.sessions.all()[0]
    auth.sessions.update(session["id"], {"expiresAt": "2020-01-01T00:00:00Z"})

    assert auth.validate_session(token) is None
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401


def test_no_configured_password_means_no_account(app, db_session):
    saved = app.config["AUTH_PASSWORD"]
    app.config["AUTH_PASSWORD"] = ""
    try:
        response = app.test_client().post("/api/auth/login", json=OWNER)
        assert response.status_code == 401
        assert response.json["code"] == "auth/user-not-found"
    finally:
        app.config["AUTH_PASSWORD"] = saved


def test_identity_follows_config(app):
    identity = AuthService.authorized_identity()
    assert identity.email == "owner@shop.test"
    assert identity.to_dict()["name"] == "Shop Owner"
