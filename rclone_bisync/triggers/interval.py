"""Repeating timer running a callback on a background thread."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Interval:
    """Calls ``callback`` every ``interval`` seconds until stopped.

    The first call happens one full interval after ``start()``. A slow
    callback delays the next tick rather than overlapping with it.
    """

    def __init__(self, callback: Callable[[], object], interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._callback = callback
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> Interval:
        if self._thread is not None:
            return self
        self._thread = threading.Thread(
            target=self._run, name="bisync-interval", daemon=True
        )
        self._thread.start()
        return self

    def stop(self, timeout: float | None = None) -> None:
        """Stop ticking and wait for the background thread to exit."""
        self._stop.set()
        self.join(timeout)

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("Interval callback failed")


def set_interval(callback: Callable[[], object], interval: float) -> Interval:
    """Start calling ``callback`` every ``interval`` seconds and return the Interval."""
    return Interval(callback, interval).start()
