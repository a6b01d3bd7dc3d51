"""Sync coordinator: the single place a bisync run is launched from."""

from __future__ import annotations

import logging
import threading

from rclone_bisync.config import SyncTarget
from rclone_bisync.rclone import RcloneRunner, SyncResult
from rclone_bisync.triggers import Debouncer

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Owns the sync guard and the debounce slot for one target.

    Periodic ticks, debounced filesystem changes and startup all go through
    ``request_sync``. The guard is a non-blocking lock: a request arriving
    while another sync runs is dropped instead of queued, because the
    interval and later change events re-request anyway.
    """

    def __init__(
        self,
        target: SyncTarget,
        runner: RcloneRunner | None = None,
        debounce_seconds: float = 30.0,
    ) -> None:
        self.target = target
        self.runner = runner or RcloneRunner()
        self._guard = threading.Lock()
        self._debouncer = Debouncer(debounce_seconds)

    @property
    def is_syncing(self) -> bool:
        return self._guard.locked()

    @property
    def change_pending(self) -> bool:
        """True while a debounced sync is scheduled but has not fired."""
        return self._debouncer.pending

    def request_sync(self, resync: bool = False) -> SyncResult | None:
        """Run one bisync unless another is in progress.

        Returns the result, or None when the request was dropped or rclone
        could not be launched. Never raises for collaborator failures.
        """
        if not self._guard.acquire(blocking=False):
            logger.debug("Sync already in progress, dropping request")
            return None

        try:
            logger.info("Syncing started%s", " (resync)" if resync else "")
            try:
                result = self.runner.run(self.target, resync=resync)
            except Exception:
                logger.exception("Could not run bisync for %s", self.target.local_path)
                return None

            if result.ok:
                logger.info("Syncing finished")
            else:
                logger.error(
                    "Syncing failed with exit status %d:\n%s",
                    result.returncode,
                    result.output.rstrip(),
                )
            return result
        finally:
            self._guard.release()

    def notify_change(self) -> bool:
        """Handle one filesystem change event.

        Schedules a debounced sync, replacing any earlier pending one. Events
        seen while a sync is running are ignored. Returns whether a sync was
        scheduled.
        """
        if self.is_syncing:
            logger.debug("Change ignored, sync in progress")
            return False
        self._debouncer.trigger(self.request_sync)
        return True

    def cancel_pending(self) -> bool:
        return self._debouncer.cancel()

    def drain(self, timeout: float | None = None) -> None:
        """Cancel the pending debounced sync and wait for one that already fired."""
        self._debouncer.stop(timeout)

    def debounce_alive(self) -> bool:
        return self._debouncer.is_alive()
