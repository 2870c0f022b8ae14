"""Application-level auth events."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

AUTH_FAILURE = "AUTH_FAILURE"

Listener = Callable[[], None]


class AuthEventBus:
    """
    Listener registry owned by one application context.

    The fetch layer emits AUTH_FAILURE when a silent refresh fails; the
    session store subscribes on mount and unsubscribes on unmount.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {AUTH_FAILURE: []}

    def on(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: Listener) -> None:
        self._listeners[event] = [l for l in self._listeners.get(event, []) if l != listener]

    def emit(self, event: str) -> None:
        # Copy: a listener may unsubscribe while being called
        for listener in list(self._listeners.get(event, [])):
            listener()

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
