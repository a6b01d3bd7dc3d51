"""Invocation of ``rclone bisync`` as a subprocess."""

from __future__ import annotations

import logging
import subprocess

from pydantic import BaseModel

from rclone_bisync.config import SyncTarget

logger = logging.getLogger(__name__)

# Fixed flag profile passed to every bisync run
BISYNC_FLAGS: tuple[str, ...] = (
    "--create-empty-src-dirs",
    "--compare", "size,modtime,checksum",
    "--slow-hash-sync-only",
    "--resilient",
    "-MvP",
    "--drive-skip-gdocs",
    "--fix-case",
)


class SyncResult(BaseModel):
    command: list[str]
    returncode: int
    output: str = ""
    resync: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def build_command(target: SyncTarget, resync: bool = False, binary: str = "rclone") -> list[str]:
    """Return the argv for one bisync run between the target's two sides."""
    cmd = [binary, "bisync", str(target.local_path), target.remote_path, *BISYNC_FLAGS]
    if resync:
        cmd.append("--resync")
    return cmd


class RcloneRunner:
    """Runs bisync for a target and captures exit status plus combined output.

    The call blocks until rclone exits; there is no timeout because an
    in-flight sync always runs to completion. Failing to launch the binary
    (``FileNotFoundError``, ``PermissionError``) propagates to the caller.
    """

    def __init__(self, binary: str = "rclone") -> None:
        self.binary = binary

    def run(self, target: SyncTarget, resync: bool = False) -> SyncResult:
        cmd = build_command(target, resync=resync, binary=self.binary)
        logger.debug("Running %s", " ".join(cmd))
        proc = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=False,
        )
        return SyncResult(
            command=cmd,
            returncode=proc.returncode,
            output=proc.stdout or "",
            resync=resync,
        )
