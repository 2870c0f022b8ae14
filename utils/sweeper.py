"""
Background maintenance for the refresh-token blacklist.

Request handlers only sweep the blacklist of the user they touch; this pass
bounds growth for users who never log in again.
"""
from __future__ import annotations

import logging
import threading

from sqlalchemy.exc import SQLAlchemyError

from models import storage
from utils.blacklist import sweep_all

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 15 * 60


class BlacklistSweeper:
    """Daemon thread that deletes expired blacklist entries every interval."""

    def __init__(self, interval_seconds: int = DEFAULT_INTERVAL_SECONDS) -> None:
        self.interval_seconds = max(1, int(interval_seconds))
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """One sweep across all users. Returns the number of entries removed."""
        try:
            removed = sweep_all()
            storage.save()
        except SQLAlchemyError:
            storage.rollback()
            logger.exception("Error cleaning up expired refresh tokens")
            return 0
        if removed:
            logger.info("Removed %d expired refresh-token blacklist entries", removed)
        return removed

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval_seconds):
            try:
                self.run_once()
            finally:
                # scoped_session is thread-local; release this thread's session
                storage.close()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="blacklist-sweeper", daemon=True)
        self._thread.start()
        logger.info("Blacklist sweeper started (every %ds)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
