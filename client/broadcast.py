"""
Same-origin broadcast between "tabs" (application contexts).

Semantics follow the browser BroadcastChannel: a message reaches every open
channel with the same name on the same hub, except the one that posted it.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

MessageListener = Callable[[Any], None]


class BroadcastHub:
    """One per origin; channels opened on it can reach each other."""

    def __init__(self) -> None:
        self._channels: Dict[str, List["BroadcastChannel"]] = {}
        self._lock = Lock()

    def open(self, name: str) -> "BroadcastChannel":
        channel = BroadcastChannel(name, self)
        with self._lock:
            self._channels.setdefault(name, []).append(channel)
        return channel

    def _detach(self, channel: "BroadcastChannel") -> None:
        with self._lock:
            peers = self._channels.get(channel.name, [])
            self._channels[channel.name] = [c for c in peers if c is not channel]

    def _deliver(self, sender: "BroadcastChannel", message: Any) -> int:
        with self._lock:
            peers = [c for c in self._channels.get(sender.name, []) if c is not sender]
        for peer in peers:
            peer._dispatch(message)
        return len(peers)


class BroadcastChannel:
    def __init__(self, name: str, hub: BroadcastHub) -> None:
        self.name = name
        self._hub = hub
        self._listeners: List[MessageListener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def post_message(self, message: Any) -> int:
        """Send to every other open channel of this name. Returns the peer count."""
        if self._closed:
            raise RuntimeError(f"BroadcastChannel {self.name!r} is closed")
        return self._hub._deliver(self, message)

    def add_listener(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: MessageListener) -> None:
        self._listeners = [l for l in self._listeners if l != listener]

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._listeners = []
            self._hub._detach(self)

    def _dispatch(self, message: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception:
                # One tab's failing handler must not stop delivery to the others
                logger.exception("Broadcast listener failed on channel %s", self.name)
