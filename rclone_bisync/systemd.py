"""systemd user-service registration for the daemon."""

from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from rclone_bisync.config import ServiceConfig, SyncTarget

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """The service unit could not be installed."""


def default_exec_command() -> list[str]:
    """Command that starts this program with the current interpreter."""
    return [sys.executable, "-m", "rclone_bisync"]


def render_unit(
    target: SyncTarget,
    sync_interval: int,
    debounce: int,
    exec_command: Sequence[str] | None = None,
) -> str:
    """Return the unit file text for a daemon running ``target``."""
    argv = [
        *(exec_command or default_exec_command()),
        "run",
        "--dir", str(Path(target.local_path).resolve()),
        "--remote-dir", target.remote_path,
        "--sync-interval", str(sync_interval),
        "--debounce", str(debounce),
    ]
    lines = [
        "[Unit]",
        "Description=rclone bisync daemon",
        "Wants=network-online.target",
        "After=network.target network-online.target",
        "",
        "[Service]",
        "Type=simple",
        f"ExecStart={shlex.join(argv)}",
        "Restart=on-failure",
        "RestartSec=5",
        "",
        "[Install]",
        "WantedBy=default.target",
        "",
    ]
    return "\n".join(lines)


def unit_path(service: ServiceConfig) -> Path:
    return Path(service.unit_dir).expanduser() / f"{service.name}.service"


def write_unit(service: ServiceConfig, content: str) -> Path:
    """Write the unit file, creating the unit directory if needed."""
    path = unit_path(service)
    try:
        path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        path.write_text(content)
        path.chmod(0o644)
    except OSError as e:
        raise ServiceError(f"Could not write service unit {path}: {e}") from e
    logger.info("Wrote service unit %s", path)
    return path


def _systemctl(*args: str) -> bool:
    cmd = ["systemctl", "--user", *args]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        logger.error("Could not run %s: %s", " ".join(cmd), e)
        return False

    if result.returncode != 0:
        logger.error(
            "%s exited %d: %s",
            " ".join(cmd),
            result.returncode,
            (result.stderr or result.stdout).strip(),
        )
        return False
    return True


def reload_units() -> bool:
    return _systemctl("daemon-reload")


def enable_service(name: str) -> bool:
    return _systemctl("enable", name)


def start_service(name: str) -> bool:
    return _systemctl("start", name)


def register(
    target: SyncTarget,
    sync_interval: int,
    debounce: int,
    service: ServiceConfig | None = None,
    exec_command: Sequence[str] | None = None,
) -> Path:
    """Install, enable and start the user service. Raises ServiceError if the unit can't be written.

    Enable/start failures are logged but don't raise; the unit file stays in
    place so the user can fix systemd and retry by hand.
    """
    service = service or ServiceConfig()
    content = render_unit(target, sync_interval, debounce, exec_command)
    path = write_unit(service, content)

    # A rewritten unit is only picked up after a reload
    reload_units()
    if enable_service(service.name):
        logger.info("rclone bisync daemon was successfully registered")
    start_service(service.name)
    return path
