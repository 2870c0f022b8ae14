"""One client "tab": the event bus, fetch wrapper, API and session store it owns."""
from __future__ import annotations

from typing import Optional

import requests

from client.api import AuthApi
from client.broadcast import BroadcastHub
from client.events import AuthEventBus
from client.fetch import AuthFetch
from client.session_store import LOGOUT_CHANNEL, Notifier, SessionStore, log_notifier


class AppContext:
    """
    Build and wire the client for one tab.

    The event bus lives and dies with the context; use it as a context
    manager to mount the session store on enter and unmount it on exit.
    """

    def __init__(
        self,
        base_url: str,
        hub: Optional[BroadcastHub] = None,
        session: Optional[requests.Session] = None,
        notify: Notifier = log_notifier,
    ):
        self.events = AuthEventBus()
        self.fetch = AuthFetch(base_url, self.events, session=session)
        self.api = AuthApi(self.fetch)
        self.channel = hub.open(LOGOUT_CHANNEL) if hub is not None else None
        self.store = SessionStore(self.api, self.events, channel=self.channel, notify=notify)

    def __enter__(self) -> "AppContext":
        self.store.mount()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.store.unmount()
        if self.channel is not None:
            self.channel.close()
