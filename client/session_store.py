"""
Client-side session state with cross-tab logout.

State: session ({id, role, sessionExp, sessionIat} or None), session_loading,
is_authenticated, is_logging_out.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional

from client.api import AuthApi
from client.broadcast import BroadcastChannel
from client.events import AUTH_FAILURE, AuthEventBus

logger = logging.getLogger(__name__)

LOGOUT_CHANNEL = "LOGOUT_CHANNEL"
LOGOUT_MESSAGE = "logout"

LOGOUT_SUCCESS = "Log out successful!"
LOGOUT_SERVER_UNREACHABLE = (
    "You have been logged out locally, but the server could not be reached. "
    "If this device is shared, please ensure you are fully logged out later."
)
ACCOUNT_DELETED = "Your account has been deleted!"
ACCOUNT_DELETE_FAILED = "Unable to delete your account!"
SESSION_EXPIRED = "Whoops! The session expired. Please log back in to continue."
SESSION_EXPIRED_SERVER_UNREACHABLE = (
    "The session expired. Please log back in to continue. However, the server "
    "could not be reached. If this device is shared, please ensure you are fully logged out later."
)

Session = Dict[str, Any]
Notifier = Callable[[str, str], None]


def log_notifier(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


class SessionStore:
    def __init__(
        self,
        api: AuthApi,
        events: AuthEventBus,
        channel: Optional[BroadcastChannel] = None,
        notify: Notifier = log_notifier,
        logging_out_seconds: float = 1.5,
    ):
        self.api = api
        self.events = events
        self.channel = channel
        self.notify = notify
        self.logging_out_seconds = logging_out_seconds

        self.session: Optional[Session] = None
        # True until the first session fetch settles, so protected views wait
        # instead of flashing a logged-out state
        self.session_loading = True
        self.is_logging_out = False
        self._logging_out_timer: Optional[threading.Timer] = None
        self._mounted = False

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def mount(self) -> None:
        """Fetch the session once and start listening."""
        if self._mounted:
            return
        self._mounted = True
        self.events.on(AUTH_FAILURE, self._handle_auth_failure)
        if self.channel is not None:
            self.channel.add_listener(self._handle_channel_message)

        self.session_loading = True
        try:
            result = self.api.get_session()
            if result.get("success") is True:
                self.session = result.get("data")
        finally:
            self.session_loading = False

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        self.events.off(AUTH_FAILURE, self._handle_auth_failure)
        if self.channel is not None:
            self.channel.remove_listener(self._handle_channel_message)
        if self._logging_out_timer is not None:
            self._logging_out_timer.cancel()
            self._logging_out_timer = None
        self.is_logging_out = False

    def handle_auth_success(self, session: Session) -> None:
        """Adopt the session returned by login/registration."""
        self.session = session

    def log_out(self) -> None:
        """User-initiated logout."""
        result = self.api.log_out()
        if result.get("success") is True:
            self.notify("success", LOGOUT_SUCCESS)
        else:
            self.notify("error", LOGOUT_SERVER_UNREACHABLE)

        self._set_logging_out()
        self.session = None
        # This tab never hears its own broadcast, hence the local clear above
        self._broadcast_logout()

    def delete_account(self) -> bool:
        """Soft-delete the signed-in account, then log out every tab."""
        result = self.api.soft_delete_user()
        if result.get("success") is not True:
            self.notify("error", ACCOUNT_DELETE_FAILED)
            return False
        self.notify("success", ACCOUNT_DELETED)
        self.log_out()
        return True

    def _set_logging_out(self) -> None:
        self.is_logging_out = True
        if self._logging_out_timer is not None:
            self._logging_out_timer.cancel()
        self._logging_out_timer = threading.Timer(self.logging_out_seconds, self._clear_logging_out)
        self._logging_out_timer.daemon = True
        self._logging_out_timer.start()

    def _clear_logging_out(self) -> None:
        self.is_logging_out = False
        self._logging_out_timer = None

    def _broadcast_logout(self) -> None:
        if self.channel is not None and not self.channel.closed:
            self.channel.post_message(LOGOUT_MESSAGE)

    def _handle_auth_failure(self) -> None:
        if self.session is None:
            return
        result = self.api.log_out()
        if result.get("success") is True:
            self.notify("success", SESSION_EXPIRED)
        else:
            self.notify("error", SESSION_EXPIRED_SERVER_UNREACHABLE)
        self.session = None
        self._broadcast_logout()

    def _handle_channel_message(self, message: Any) -> None:
        # The posting tab already revoked server-side; only local state changes here
        if message == LOGOUT_MESSAGE:
            self.session = None
