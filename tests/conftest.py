from __future__ import annotations

import pytest

from api import create_app
from models import storage
from models.user import Role, User
from utils.security import hash_password

PASSWORD = "Secret_pass1!"


@pytest.fixture()
def app():
    # Fresh in-memory database per test (TestingConfig.DATABASE_URL = "sqlite://")
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    """Insert a user directly and return its id."""

    def _make_user(
        email: str = "ada@example.com",
        password: str = PASSWORD,
        role: Role = Role.USER,
        is_active: bool = True,
    ) -> str:
        with app.app_context():
            user = User(
                user_name=email.split("@")[0],
                first_name="Ada",
                last_name="Lovelace",
                email=email,
                password_hash=hash_password(password),
                role=role,
                is_active=is_active,
            )
            storage.new(user)
            storage.save()
            return user.id

    return _make_user


@pytest.fixture()
def login(client):
    def _login(email: str = "ada@example.com", password: str = PASSWORD):
        return client.post("/api/auth/login", json={"email": email, "password": password})

    return _login


def cookie_value(client, name: str):
    path = "/api/auth" if name == "refreshToken" else "/"
    cookie = client.get_cookie(name, path=path)
    return cookie.value if cookie is not None else None


def set_cookies(resp):
    return resp.headers.getlist("Set-Cookie")
