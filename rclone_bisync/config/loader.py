"""YAML config loading for rclone-bisync."""

import os
import re
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import ConfigurationError, DaemonConfig

CONFIG_FILENAME = "rclone-bisync.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def _candidates(cli_path: str | None) -> Iterator[Path]:
    if cli_path:
        yield Path(cli_path)
    yield Path(CONFIG_FILENAME)
    yield Path.home() / ".config" / "rclone-bisync" / "config.yaml"


def load_config(cli_path: str | None = None) -> DaemonConfig:
    """Load the first non-empty config among --config, ./rclone-bisync.yaml and
    ~/.config/rclone-bisync/config.yaml; defaults when none exists."""
    if cli_path and not Path(cli_path).exists():
        raise ConfigurationError(f"Config file {cli_path} does not exist")

    for path in _candidates(cli_path):
        if not path.is_file():
            continue
        try:
            raw = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Invalid config in {path}: expected a mapping")
        try:
            return DaemonConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid config in {path}: {e}") from e

    return DaemonConfig()


def _expand_env_vars(values: dict) -> dict:
    """Expand ${VAR} in string values of the top-level and nested mappings."""
    expanded = {}
    for key, value in values.items():
        if isinstance(value, str):
            value = _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
        elif isinstance(value, dict):
            value = _expand_env_vars(value)
        expanded[key] = value
    return expanded


# Default YAML template for `rclone-bisync config init`
DEFAULT_CONFIG_TEMPLATE = """\
# rclone-bisync.yaml

# rclone executable (name on PATH or absolute path)
rclone_binary: "rclone"

# Seconds between periodic syncs (overridden by --sync-interval)
sync_interval: 300

# Quiet seconds after the last file change before syncing (overridden by --debounce)
debounce: 30

# Filesystem watch
watch:
  poll_interval: 1.0

# systemd user service written by `rclone-bisync register`
service:
  name: "rclone-bisync-daemon"
  unit_dir: "~/.config/systemd/user"

# Logging
log_level: "info"              # debug | info | warn | error
"""
