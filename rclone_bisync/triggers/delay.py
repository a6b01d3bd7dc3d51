"""Cancellable one-shot delays and a single-slot debouncer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

_PENDING = "pending"
_FIRED = "fired"
_CANCELLED = "cancelled"


class Delay:
    """Runs ``action`` once after ``duration`` seconds unless cancelled first.

    The timer thread and ``cancel()`` race for a single state transition made
    under a lock, so exactly one of them wins. The action itself runs outside
    the lock on the timer thread.
    """

    def __init__(self, action: Callable[[], object], duration: float) -> None:
        self._action = action
        self._duration = duration
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._state = _PENDING
        self._thread = threading.Thread(
            target=self._run, name="bisync-delay", daemon=True
        )

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._state == _PENDING

    @property
    def fired(self) -> bool:
        with self._lock:
            return self._state == _FIRED

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._state == _CANCELLED

    def start(self) -> Delay:
        self._thread.start()
        return self

    def cancel(self) -> bool:
        """Cancel the delay if it has not fired yet.

        Returns True when this call prevented the action. Cancelling a fired
        or already cancelled delay does nothing and never blocks.
        """
        with self._lock:
            if self._state != _PENDING:
                return False
            self._state = _CANCELLED
        self._wake.set()
        return True

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: float | None = None) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        self._wake.wait(self._duration)
        with self._lock:
            if self._state != _PENDING:
                return
            self._state = _FIRED
        try:
            self._action()
        except Exception:
            logger.exception("Delayed action failed")


def set_timeout(action: Callable[[], object], duration: float) -> Delay:
    """Schedule ``action`` to run after ``duration`` seconds and return its Delay."""
    return Delay(action, duration).start()


class Debouncer:
    """Holds at most one live Delay; each trigger replaces the previous one.

    Only the last trigger in a burst fires, ``duration`` seconds after it.
    The slot keeps the most recent Delay after it fires so ``stop()`` can
    wait for an action that is still running.
    """

    def __init__(self, duration: float) -> None:
        self._duration = duration
        self._lock = threading.Lock()
        self._current: Delay | None = None

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._current is not None and self._current.pending

    def trigger(self, action: Callable[[], object]) -> Delay:
        """Cancel any pending delay, then schedule ``action`` after the debounce window."""
        with self._lock:
            if self._current is not None and self._current.cancel():
                logger.debug("Debounce reset, next sync in %ss", self._duration)
            self._current = set_timeout(action, self._duration)
            return self._current

    def cancel(self) -> bool:
        """Cancel the pending delay, if any. Returns True if one was cancelled."""
        with self._lock:
            current = self._current
        if current is None:
            return False
        return current.cancel()

    def is_alive(self) -> bool:
        """True while the latest delay is waiting or its action is running."""
        with self._lock:
            current = self._current
        return current is not None and current.is_alive()

    def stop(self, timeout: float | None = None) -> None:
        """Cancel the pending delay and wait for an already fired one to finish."""
        self.cancel()
        with self._lock:
            current = self._current
        if current is not None:
            current.join(timeout)
