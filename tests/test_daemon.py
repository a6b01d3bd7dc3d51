"""Tests for the daemon lifecycle and its task tracking."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

from conftest import FakeRunner, wait_for
from rclone_bisync.daemon import Daemon, TaskTracker


def _make_daemon(target, runner, sync_interval=60.0, debounce=60.0) -> Daemon:
    return Daemon(
        target,
        sync_interval=sync_interval,
        debounce=debounce,
        poll_interval=0.1,
        runner=runner,
    )


def _shutdown(daemon: Daemon) -> None:
    daemon.stop()
    daemon.wait()


# ── TaskTracker ──────────────────────────────────────────────────────


class TestTaskTracker:
    def test_stops_in_reverse_order(self):
        order: list[str] = []
        tracker = TaskTracker()
        tracker.track("first", lambda: order.append("first"), lambda: False)
        tracker.track("second", lambda: order.append("second"), lambda: False)

        tracker.stop_all()

        assert order == ["second", "first"]
        assert tracker.names == ["first", "second"]

    def test_failing_stop_does_not_block_others(self, caplog):
        stopped = MagicMock()
        tracker = TaskTracker()
        tracker.track("ok", stopped, lambda: False)
        tracker.track("broken", MagicMock(side_effect=RuntimeError("stuck")), lambda: True)

        tracker.stop_all()

        stopped.assert_called_once()
        assert "Failed to stop broken" in caplog.text

    def test_alive_lists_running(self):
        tracker = TaskTracker()
        tracker.track("a", lambda: None, lambda: True)
        tracker.track("b", lambda: None, lambda: False)
        assert tracker.alive() == ["a"]


# ── Daemon ───────────────────────────────────────────────────────────


class TestDaemonStartup:
    def test_startup_runs_exactly_one_resync(self, sync_target):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner)
        daemon.start()
        try:
            assert runner.calls == [True]
        finally:
            _shutdown(daemon)
        assert runner.resync_calls == 1

    def test_startup_sync_precedes_background_tasks(self, sync_target):
        runner = FakeRunner()
        seen: list[list[str]] = []
        daemon = _make_daemon(sync_target, runner)

        def record(*args, **kwargs):
            seen.append(daemon.tasks.names)
            return MagicMock(ok=True)

        runner.run = MagicMock(side_effect=record)

        daemon.start()
        _shutdown(daemon)

        assert seen[0] == []

    def test_start_twice_is_noop(self, sync_target):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner)
        daemon.start()
        daemon.start()
        _shutdown(daemon)
        assert runner.calls == [True]
        assert daemon.tasks.names == ["debounce", "interval", "watcher"]

    def test_failed_startup_sync_keeps_running(self, sync_target):
        runner = FakeRunner(returncode=1)
        daemon = _make_daemon(sync_target, runner, sync_interval=0.2)
        daemon.start()
        try:
            assert daemon.running
            assert wait_for(lambda: runner.normal_calls >= 1)
        finally:
            _shutdown(daemon)


class TestDaemonTriggers:
    def test_interval_triggers_normal_sync(self, sync_target):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner, sync_interval=0.3)
        daemon.start()
        try:
            time.sleep(0.15)
            assert runner.calls == [True]
            assert wait_for(lambda: runner.normal_calls == 1)
        finally:
            _shutdown(daemon)
        assert runner.resync_calls == 1

    def test_single_write_triggers_one_debounced_sync(self, sync_target, local_dir):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner, debounce=0.3)
        daemon.start()
        try:
            time.sleep(0.3)
            (local_dir / "notes.txt").write_text("changed")
            assert wait_for(lambda: runner.normal_calls == 1)
            time.sleep(0.6)
            assert runner.calls == [True, False]
        finally:
            _shutdown(daemon)

    def test_burst_of_writes_coalesces(self, sync_target, local_dir):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner, debounce=0.5)
        daemon.start()
        try:
            time.sleep(0.3)
            for i in range(5):
                (local_dir / f"burst_{i}.txt").write_text(str(i))
                time.sleep(0.15)
            assert wait_for(lambda: runner.normal_calls >= 1, timeout=4)
            time.sleep(0.8)
            assert runner.normal_calls == 1
        finally:
            _shutdown(daemon)

    def test_interval_and_debounce_one_second(self, sync_target):
        """With a 1s interval and no changes, one normal sync follows the startup resync."""
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner, sync_interval=1.0, debounce=1.0)
        daemon.start()
        try:
            time.sleep(1.5)
            assert runner.calls == [True, False]
        finally:
            _shutdown(daemon)


class TestDaemonShutdown:
    def test_wait_joins_background_tasks(self, sync_target):
        daemon = _make_daemon(sync_target, FakeRunner(), sync_interval=0.1)
        daemon.start()
        _shutdown(daemon)

        assert daemon.tasks.alive() == []
        assert not daemon.running

    def test_wait_cancels_pending_debounce(self, sync_target):
        runner = FakeRunner()
        daemon = _make_daemon(sync_target, runner, debounce=0.3)
        daemon.start()
        daemon.coordinator.notify_change()
        assert daemon.coordinator.change_pending

        _shutdown(daemon)
        time.sleep(0.5)

        assert not daemon.coordinator.change_pending
        assert runner.calls == [True]

    def test_stop_from_other_thread_unblocks_run_forever(self, sync_target):
        daemon = _make_daemon(sync_target, FakeRunner())
        t = threading.Thread(target=daemon.run_forever)
        t.start()
        assert wait_for(lambda: daemon.running)

        daemon.stop()
        t.join(timeout=5)

        assert not t.is_alive()
        assert daemon.tasks.alive() == []

    def test_wait_blocks_until_running_debounced_sync_finishes(self, sync_target):
        runner = FakeRunner(delay=1.0)
        daemon = _make_daemon(sync_target, runner, debounce=0)
        daemon.start()
        daemon.coordinator.notify_change()
        assert wait_for(lambda: runner.active == 1)

        _shutdown(daemon)

        assert runner.active == 0
        assert runner.calls == [True, False]
        assert daemon.tasks.alive() == []

    def test_watcher_stops_before_debounce_is_drained(self, sync_target):
        daemon = _make_daemon(sync_target, FakeRunner())
        daemon.start()
        order: list[str] = []
        watcher_stop = daemon._watcher.stop
        drain = daemon.coordinator.drain

        def stop_watcher(*args, **kwargs):
            order.append("watcher")
            return watcher_stop(*args, **kwargs)

        def drain_debounce(*args, **kwargs):
            order.append("debounce")
            return drain(*args, **kwargs)

        for task in daemon.tasks._tasks:
            if task.name == "watcher":
                task.stop = stop_watcher
            elif task.name == "debounce":
                task.stop = drain_debounce

        _shutdown(daemon)

        assert order == ["watcher", "debounce"]
