import time

import jwt
import pytest

from client.events import AUTH_FAILURE, AuthEventBus
from client.fetch import AuthFetch
from conftest import cookie_value
from transport import FlaskSession, ScriptedSession, make_response

BASE = "http://api.test"


@pytest.fixture()
def events():
    return AuthEventBus()


@pytest.fixture()
def failures(events):
    seen = []
    events.on(AUTH_FAILURE, lambda: seen.append(AUTH_FAILURE))
    return seen


def test_non_401_passes_through(events, failures):
    transport = ScriptedSession(make_response(403, {"code": "FORBIDDEN"}))
    resp = AuthFetch(BASE, events, session=transport).get("/api/admin/test")
    assert resp.status_code == 403
    assert transport.paths == ["/api/admin/test"]
    assert failures == []


def test_401_refreshes_then_replays_once(events, failures):
    transport = ScriptedSession(
        make_response(401),
        make_response(200, {"success": True}),
        make_response(200, {"data": "payload"}),
    )
    resp = AuthFetch(BASE, events, session=transport).post("/api/things", json={"a": 1})
    assert resp.status_code == 200
    assert resp.json() == {"data": "payload"}
    assert transport.paths == ["/api/things", "/api/auth/refresh-token", "/api/things"]
    assert [c[0] for c in transport.calls] == ["POST", "GET", "POST"]
    # The replay carries the original body
    assert transport.calls[2][2]["json"] == {"a": 1}
    assert failures == []


def test_failed_refresh_emits_once_and_returns_original(events, failures):
    original = make_response(401, {"code": "UNAUTHORIZED"})
    transport = ScriptedSession(original, make_response(401, {"code": "BLACKLISTED_TOKEN"}))
    resp = AuthFetch(BASE, events, session=transport).get("/api/auth/session")
    assert resp is original
    assert failures == [AUTH_FAILURE]
    assert len(transport.calls) == 2


def test_replay_401_is_not_retried(events, failures):
    transport = ScriptedSession(make_response(401), make_response(200), make_response(401))
    resp = AuthFetch(BASE, events, session=transport).get("/api/auth/session")
    assert resp.status_code == 401
    assert len(transport.calls) == 3
    assert failures == []


def test_default_headers_and_timeout(events):
    transport = ScriptedSession(make_response(200))
    AuthFetch(BASE, events, session=transport, timeout=3).get("/api/health", headers={"X-Trace": "1"})
    kwargs = transport.calls[0][2]
    assert kwargs["headers"] == {"Content-Type": "application/json", "X-Trace": "1"}
    assert kwargs["timeout"] == 3


def test_each_401_triggers_its_own_refresh(events):
    transport = ScriptedSession(
        make_response(401), make_response(200), make_response(200),
        make_response(401), make_response(200), make_response(200),
    )
    fetch = AuthFetch(BASE, events, session=transport)
    fetch.get("/api/a")
    fetch.get("/api/b")
    assert transport.paths.count("/api/auth/refresh-token") == 2


def test_silent_refresh_against_the_app(app, client, make_user, login, events, failures):
    make_user()
    login()
    old_refresh = cookie_value(client, "refreshToken")

    # Replace the access cookie with one that has already expired
    now = int(time.time())
    expired = jwt.encode(
        {"id": "whoever", "role": "USER", "iat": now - 120, "exp": now - 60},
        app.config["ACCESS_TOKEN_SECRET"],
        algorithm="HS256",
    )
    client.set_cookie("accessToken", expired, path="/")

    transport = FlaskSession(client)
    resp = AuthFetch(BASE, events, session=transport).get("/api/users/current")
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == "ada@example.com"
    assert transport.paths == ["/api/users/current", "/api/auth/refresh-token", "/api/users/current"]
    assert cookie_value(client, "refreshToken") != old_refresh
    assert failures == []


def test_revoked_session_against_the_app(client, make_user, login, events, failures):
    make_user()
    login()
    old_refresh = cookie_value(client, "refreshToken")
    client.get("/api/auth/refresh-token")
    # Put back the rotated-out token and drop the access cookie
    client.set_cookie("refreshToken", old_refresh, path="/api/auth")
    client.delete_cookie("accessToken", path="/")

    resp = AuthFetch(BASE, events, session=FlaskSession(client)).get("/api/auth/session")
    assert resp.status_code == 401
    assert failures == [AUTH_FAILURE]
