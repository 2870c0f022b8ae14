"""Calls to the auth endpoints; each returns the API's response envelope."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

import requests

from client.fetch import AuthFetch

logger = logging.getLogger(__name__)

Envelope = Dict[str, Any]


def handle_error(err: Exception) -> Envelope:
    """Envelope for failures that never produced a server response."""
    logger.warning("Request failed: %s: %s", err.__class__.__name__, err)
    return {
        "code": "INTERNAL_SERVER_ERROR",
        "data": None,
        "message": "Internal server error.",
        "success": False,
    }
class AuthApi:
    def __init__(self, fetch: AuthFetch):
        self.fetch = fetch

    def _call(self, send: Callable[..., requests.Response], path: str, **kwargs: Any) -> Envelope:
        try:
            response = send(path, **kwargs)
            return response.json()
        except (requests.RequestException, ValueError) as err:
            return handle_error(err)

    def log_in(self, email: str, password: str) -> Envelope:
        return self._call(self.fetch.post, "/api/auth/login", json={"email": email, "password": password})

    def register(self, **fields: Any) -> Envelope:
        """fields: userName, firstName, lastName, email, password, confirmPassword"""
        return self._call(self.fetch.post, "/api/users", json=fields)

    def get_session(self) -> Envelope:
        return self._call(self.fetch.get, "/api/auth/session")

    def log_out(self) -> Envelope:
        return self._call(self.fetch.post, "/api/auth/logout")

    def get_current_user(self) -> Envelope:
        return self._call(self.fetch.get, "/api/users/current")

    def soft_delete_user(self) -> Envelope:
        """Deactivate the signed-in account; the server also clears both cookies."""
        return self._call(self.fetch.patch, "/api/users/soft-delete")
