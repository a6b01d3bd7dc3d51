"""Shared test fixtures for rclone-bisync."""

import threading
import time

import pytest

from rclone_bisync.config import DaemonConfig, SyncTarget
from rclone_bisync.rclone import RcloneRunner, SyncResult, build_command


class FakeRunner(RcloneRunner):
    """Records bisync calls instead of spawning rclone.

    ``delay`` keeps each call busy for that many seconds; ``active`` and
    ``max_active`` track how many calls overlapped.
    """

    def __init__(self, returncode: int = 0, delay: float = 0.0, output: str = "ok") -> None:
        super().__init__("rclone")
        self.returncode = returncode
        self.delay = delay
        self.output = output
        self.calls: list[bool] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def run(self, target: SyncTarget, resync: bool = False) -> SyncResult:
        with self._lock:
            self.calls.append(resync)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            return SyncResult(
                command=build_command(target, resync=resync),
                returncode=self.returncode,
                output=self.output,
                resync=resync,
            )
        finally:
            with self._lock:
                self.active -= 1

    @property
    def resync_calls(self) -> int:
        return sum(1 for r in self.calls if r)

    @property
    def normal_calls(self) -> int:
        return sum(1 for r in self.calls if not r)


def wait_for(predicate, timeout: float = 3.0, interval: float = 0.02) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def local_dir(tmp_path):
    d = tmp_path / "local"
    d.mkdir()
    (d / "notes.txt").write_text("hello")
    return d


@pytest.fixture
def sync_target(local_dir):
    return SyncTarget(local_path=local_dir, remote_path="remote:bucket")


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sample_config():
    return DaemonConfig()
