import time

import jwt
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import PASSWORD, cookie_value, set_cookies
from models import storage
from models.user import Role, User
from utils import blacklist
from utils.security import decode_unverified


def _refresh_claims(client):
    return decode_unverified(cookie_value(client, "refreshToken"))


# ---------- login ----------

def test_login_sets_cookies_and_returns_session(client, make_user, login):
    user_id = make_user()
    resp = login()
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["code"] == "OK"

    claims = _refresh_claims(client)
    assert body["data"] == {
        "id": user_id,
        "role": "USER",
        "sessionExp": claims["exp"],
        "sessionIat": claims["iat"],
    }
    assert cookie_value(client, "accessToken")

    headers = set_cookies(resp)
    access = next(h for h in headers if h.startswith("accessToken="))
    refresh = next(h for h in headers if h.startswith("refreshToken="))
    assert "HttpOnly" in access and "Path=/;" in access
    assert "HttpOnly" in refresh and "Path=/api/auth" in refresh


def test_login_email_is_case_insensitive(make_user, login):
    make_user()
    assert login(email="  ADA@Example.com ").status_code == 200


def test_fresh_jti_is_not_blacklisted(app, client, make_user, login):
    user_id = make_user()
    login()
    with app.app_context():
        assert not blacklist.contains(user_id, _refresh_claims(client)["jti"])


@pytest.mark.parametrize(
    "payload",
    [
        {"email": "ada@example.com", "password": "Wrong_pass1!"},
        {"email": "nobody@example.com", "password": PASSWORD},
        {"email": "not-an-email", "password": PASSWORD},
        {"email": "ada@example.com"},
        {},
    ],
)
def test_login_failures_are_uniform(client, make_user, payload):
    make_user()
    resp = client.post("/api/auth/login", json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["code"] == "INVALID_CREDENTIALS"
    assert body["message"] == "Invalid credentials."
    assert body["data"] is None
    assert set_cookies(resp) == []


def test_inactive_user_cannot_log_in(make_user, login):
    make_user(is_active=False)
    resp = login()
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_CREDENTIALS"
    assert set_cookies(resp) == []


# ---------- logout ----------

def test_logout_blacklists_refresh_token_and_clears_cookies(app, client, make_user, login):
    user_id = make_user()
    login()
    jti = _refresh_claims(client)["jti"]

    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert cookie_value(client, "accessToken") is None
    assert cookie_value(client, "refreshToken") is None
    with app.app_context():
        assert blacklist.contains(user_id, jti)


def test_logout_is_idempotent(client, make_user, login):
    make_user()
    login()
    assert client.post("/api/auth/logout").status_code == 200
    assert client.post("/api/auth/logout").status_code == 200


def test_logout_without_or_with_garbage_cookie(client):
    assert client.post("/api/auth/logout").status_code == 200
    client.set_cookie("refreshToken", "garbage", path="/api/auth")
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    # Cleared with the same path it was set with
    assert any(h.startswith("refreshToken=;") and "Path=/api/auth" in h for h in set_cookies(resp))


# ---------- session ----------

def test_session_returns_refresh_claims(client, make_user, login):
    make_user()
    session = login().get_json()["data"]
    resp = client.get("/api/auth/session")
    assert resp.status_code == 200
    assert resp.get_json()["data"] == session


def test_session_requires_access_cookie(client):
    resp = client.get("/api/auth/session")
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHORIZED"


def test_session_requires_refresh_cookie(client, make_user, login):
    make_user()
    login()
    client.delete_cookie("refreshToken", path="/api/auth")
    resp = client.get("/api/auth/session")
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHORIZED"


# ---------- refresh ----------

def test_refresh_rotates_and_keeps_absolute_expiry(app, client, make_user, login):
    user_id = make_user()
    login()
    old_token = cookie_value(client, "refreshToken")
    old = decode_unverified(old_token)

    resp = client.get("/api/auth/refresh-token")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"] is None

    new = _refresh_claims(client)
    assert new["jti"] != old["jti"]
    assert new["exp"] == old["exp"]
    assert new["id"] == user_id
    with app.app_context():
        assert blacklist.contains(user_id, old["jti"])
        assert not blacklist.contains(user_id, new["jti"])

    # The new pair works
    assert client.get("/api/auth/session").status_code == 200


def test_reused_refresh_token_is_rejected(client, make_user, login):
    make_user()
    login()
    old_token = cookie_value(client, "refreshToken")
    assert client.get("/api/auth/refresh-token").status_code == 200

    client.set_cookie("refreshToken", old_token, path="/api/auth")
    resp = client.get("/api/auth/refresh-token")
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "BLACKLISTED_TOKEN"
    assert set_cookies(resp) == []


def test_refresh_without_cookie(client):
    resp = client.get("/api/auth/refresh-token")
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHORIZED"


def test_refresh_with_expired_token(app, client, make_user):
    user_id = make_user()
    now = int(time.time())
    expired = jwt.encode(
        {"id": user_id, "role": "USER", "jti": "j1", "iat": now - 120, "exp": now - 60},
        app.config["REFRESH_TOKEN_SECRET"],
        algorithm="HS256",
    )
    client.set_cookie("refreshToken", expired, path="/api/auth")
    resp = client.get("/api/auth/refresh-token")
    assert resp.status_code == 401
    assert set_cookies(resp) == []


def test_refresh_picks_up_role_change(app, client, make_user, login):
    user_id = make_user()
    login()
    with app.app_context():
        user = storage.get(User, user_id)
        user.role = Role.ADMIN
        storage.save()

    assert client.get("/api/auth/refresh-token").status_code == 200
    assert _refresh_claims(client)["role"] == "ADMIN"
    assert decode_unverified(cookie_value(client, "accessToken"))["role"] == "ADMIN"


def test_refresh_rejects_deactivated_user(app, client, make_user, login):
    user_id = make_user()
    login()
    with app.app_context():
        storage.get(User, user_id).is_active = False
        storage.save()

    resp = client.get("/api/auth/refresh-token")
    assert resp.status_code == 401
    assert set_cookies(resp) == []


def test_login_sweeps_expired_entries(app, client, make_user, login):
    user_id = make_user()
    with app.app_context():
        blacklist.revoke(user_id, "stale", 1)
        storage.save()
    login()
    with app.app_context():
        assert blacklist.entries(user_id) == []


@pytest.mark.parametrize(
    "error",
    [
        OperationalError("INSERT INTO blacklisted_tokens", {}, Exception("database is locked")),
        IntegrityError("INSERT INTO blacklisted_tokens", {}, Exception("UNIQUE constraint failed")),
    ],
)
def test_logout_clears_cookies_even_if_blacklisting_fails(client, make_user, login, monkeypatch, error):
    make_user()
    login()

    def fail(*args, **kwargs):
        raise error

    monkeypatch.setattr(blacklist, "revoke", fail)
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert cookie_value(client, "accessToken") is None
    assert cookie_value(client, "refreshToken") is None
    headers = set_cookies(resp)
    assert any(h.startswith("accessToken=;") for h in headers)
    assert any(h.startswith("refreshToken=;") for h in headers)
