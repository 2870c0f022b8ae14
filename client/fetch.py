"""Silent-refresh fetch wrapper"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from client.events import AUTH_FAILURE, AuthEventBus

logger = logging.getLogger(__name__)

REFRESH_PATH = "/api/auth/refresh-token"
DEFAULT_HEADERS = {"Content-Type": "application/json"}


class AuthFetch:
    """Wrap HTTP calls to the API with one transparent token refresh.

    All requests share one ``requests.Session`` cookie jar, so the httpOnly
    ``accessToken``/``refreshToken`` cookies ride along on every call (the
    counterpart of ``credentials: "include"`` in a browser).

    On a 401:

    - call ``GET /api/auth/refresh-token`` once;
    - if it succeeds, replay the original request exactly once and return
      that response, whatever its status;
    - otherwise emit ``AUTH_FAILURE`` on the event bus and return the
      original 401. Session state is the session store's business, not ours.

    Concurrent 401s each trigger their own refresh; nothing is coalesced.
    """

    def __init__(
        self,
        base_url: str,
        events: AuthEventBus,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        refresh_path: str = REFRESH_PATH,
    ):
        self.base_url = base_url.rstrip("/")
        self.events = events
        self.session = session or requests.Session()
        self.timeout = timeout
        self.refresh_path = refresh_path

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}{path}"

    def _send(self, method: str, url: str, headers: Dict[str, str], **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        return self.session.request(method, url, headers=headers, **kwargs)

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send a request; on 401 refresh once and replay once.

        Args:
            method:   HTTP method (``GET``, ``POST``, ...).
            path:     API path (e.g. ``/api/auth/session``) or absolute URL.
            **kwargs: Forwarded to ``requests.Session.request``.

        Raises:
            requests.RequestException: On transport failure.
        """
        url = self._url(path)
        headers = {**DEFAULT_HEADERS, **(kwargs.pop("headers", None) or {})}

        response = self._send(method, url, headers, **kwargs)
        if response.status_code != 401:
            return response

        refresh_response = self._send("GET", self._url(self.refresh_path), dict(DEFAULT_HEADERS))
        if refresh_response.ok:
            return self._send(method, url, headers, **kwargs)

        logger.info("Token refresh failed with %s; emitting %s", refresh_response.status_code, AUTH_FAILURE)
        self.events.emit(AUTH_FAILURE)
        return response

    def get(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> requests.Response:
        return self.request("PATCH", path, **kwargs)
