"""Daemon lifecycle: startup sync, steady-state triggers, join on shutdown."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from rclone_bisync.config import SyncTarget
from rclone_bisync.coordinator import SyncCoordinator
from rclone_bisync.rclone import RcloneRunner
from rclone_bisync.triggers import Interval
from rclone_bisync.watcher import ChangeWatcher

logger = logging.getLogger(__name__)


@dataclass
class _Task:
    name: str
    stop: Callable[[], object]
    is_alive: Callable[[], bool]


class TaskTracker:
    """Registry of background contexts that must exit before the process does."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: list[_Task] = []

    def track(
        self,
        name: str,
        stop: Callable[[], object],
        is_alive: Callable[[], bool],
    ) -> None:
        with self._lock:
            self._tasks.append(_Task(name, stop, is_alive))

    @property
    def names(self) -> list[str]:
        with self._lock:
            return [t.name for t in self._tasks]

    def alive(self) -> list[str]:
        with self._lock:
            return [t.name for t in self._tasks if t.is_alive()]

    def stop_all(self) -> None:
        """Stop every task in reverse registration order; each stop joins its thread."""
        with self._lock:
            tasks = list(reversed(self._tasks))
        for task in tasks:
            try:
                task.stop()
            except Exception:
                logger.exception("Failed to stop %s", task.name)
            else:
                logger.debug("Stopped %s", task.name)


class Daemon:
    """Keeps one SyncTarget in bisync on an interval and on local changes.

    ``start()`` runs a resync first (blocking), then starts the interval
    trigger and the watcher. ``wait()`` blocks until ``stop()`` is called,
    then stops the watcher and the interval, cancels any pending debounced
    sync and waits for a debounced sync that is already running.
    """

    def __init__(
        self,
        target: SyncTarget,
        sync_interval: float = 300,
        debounce: float = 30,
        poll_interval: float = 1.0,
        runner: RcloneRunner | None = None,
    ) -> None:
        self.target = target
        self.sync_interval = sync_interval
        self.debounce = debounce
        self.coordinator = SyncCoordinator(target, runner=runner, debounce_seconds=debounce)
        self.tasks = TaskTracker()
        self._interval = Interval(self._on_tick, sync_interval)
        self._watcher = ChangeWatcher(
            target.local_path, self.coordinator.notify_change, poll_interval=poll_interval
        )
        self._shutdown = threading.Event()
        self._started = False

    @property
    def running(self) -> bool:
        return self._started and not self._shutdown.is_set()

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        logger.info(
            "Starting rclone bisync daemon: %s <-> %s (interval %ss, debounce %ss)",
            self.target.local_path,
            self.target.remote_path,
            self.sync_interval,
            self.debounce,
        )
        self.coordinator.request_sync(resync=True)

        # Tracked first so stop_all() drains it after the watcher and interval
        self.tasks.track("debounce", self.coordinator.drain, self.coordinator.debounce_alive)
        self._interval.start()
        self.tasks.track("interval", self._interval.stop, self._interval.is_alive)
        self._watcher.start()
        self.tasks.track("watcher", self._watcher.stop, self._watcher.is_alive)

    def stop(self) -> None:
        """Request shutdown; safe to call from a signal handler or another thread."""
        self._shutdown.set()

    def wait(self) -> None:
        self._shutdown.wait()
        self.tasks.stop_all()
        still_running = self.tasks.alive()
        if still_running:
            logger.warning("Background tasks did not exit: %s", ", ".join(still_running))
        logger.info("rclone bisync daemon stopped")

    def run_forever(self) -> None:
        self.start()
        self.wait()

    def _on_tick(self) -> None:
        logger.debug("Interval elapsed, requesting sync")
        self.coordinator.request_sync()
