from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ConfigurationError(ValueError):
    """Invalid or missing configuration; fatal at startup."""


class SyncTarget(BaseModel):
    """The local directory and the rclone remote path kept in bisync."""

    model_config = ConfigDict(frozen=True)

    local_path: Path
    remote_path: str = Field(min_length=1)

    @classmethod
    def validated(cls, local_path: str | None, remote_path: str | None) -> "SyncTarget":
        """Build a target from raw CLI values, raising ConfigurationError on bad input."""
        if not local_path:
            raise ConfigurationError("Directory path is required (--dir)")
        if not remote_path:
            raise ConfigurationError("Remote directory path is required (--remote-dir)")
        path = Path(local_path).expanduser()
        if not path.exists():
            raise ConfigurationError(f"Directory {local_path} does not exist")
        if not path.is_dir():
            raise ConfigurationError(f"{local_path} is not a directory")
        return cls(local_path=path, remote_path=remote_path)


class WatchConfig(BaseModel):
    poll_interval: float = Field(default=1.0, gt=0)


class ServiceConfig(BaseModel):
    name: str = "rclone-bisync-daemon"
    unit_dir: str = "~/.config/systemd/user"


class DaemonConfig(BaseModel):
    rclone_binary: str = "rclone"
    sync_interval: int = Field(default=300, gt=0)
    debounce: int = Field(default=30, ge=0)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
