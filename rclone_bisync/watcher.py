"""Polling filesystem watcher feeding change events to the sync coordinator."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers.polling import PollingObserver

logger = logging.getLogger(__name__)

# Renames and moves arrive as "moved"; permission changes as "modified".
WATCHED_EVENT_TYPES = frozenset({
    EVENT_TYPE_MOVED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_CREATED,
})


class _ChangeHandler(FileSystemEventHandler):
    """Forwards relevant filesystem events to ``on_change``."""

    def __init__(self, on_change: Callable[[], object]) -> None:
        super().__init__()
        self._on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in WATCHED_EVENT_TYPES:
            return
        logger.debug("Received fs event: %s %s", event.event_type, event.src_path)
        try:
            self._on_change()
        except Exception:
            logger.exception("Change handler failed for %s", event.src_path)


class ChangeWatcher:
    """Recursively polls a directory and reports changes.

    Uses watchdog's PollingObserver so behaviour is the same on every
    platform and filesystem, including network mounts where inotify
    is unreliable.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], object],
        poll_interval: float = 1.0,
    ) -> None:
        self._path = Path(path).resolve()
        self._poll_interval = poll_interval
        self._handler = _ChangeHandler(on_change)
        self._observer: PollingObserver | None = None

    @property
    def path(self) -> Path:
        return self._path

    def is_alive(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        """Begin watching the directory recursively."""
        if self._observer is not None:
            return
        self._observer = PollingObserver(timeout=self._poll_interval)
        self._observer.schedule(self._handler, str(self._path), recursive=True)
        self._observer.start()
        logger.info("Watching %s for changes", self._path)

    def stop(self, timeout: float | None = 5) -> None:
        """Stop watching and wait for the observer thread to exit."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=timeout)
        self._observer = None
        logger.info("Stopped watching %s", self._path)
