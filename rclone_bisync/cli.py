"""CLI entry point for rclone-bisync."""

from __future__ import annotations

import signal
from pathlib import Path
from types import FrameType
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax

from rclone_bisync.config import (
    DEFAULT_CONFIG_TEMPLATE,
    ConfigurationError,
    DaemonConfig,
    SyncTarget,
    load_config,
)
from rclone_bisync.config.loader import CONFIG_FILENAME
from rclone_bisync.coordinator import SyncCoordinator
from rclone_bisync.daemon import Daemon
from rclone_bisync.log import setup_logging
from rclone_bisync.rclone import RcloneRunner
from rclone_bisync.systemd import ServiceError, register as register_service

app = typer.Typer(
    name="rclone-bisync",
    help="Keep a local directory in bisync with an rclone remote.",
    context_settings={"help_option_names": ["--help", "-help"]},
    no_args_is_help=True,
)

config_app = typer.Typer(help="Manage rclone-bisync configuration.")
app.add_typer(config_app, name="config")

# Global state
_config_path: str | None = None
_config: DaemonConfig | None = None

DirOption = Annotated[
    str | None, typer.Option("--dir", help="Path to the local directory to sync")
]
RemoteDirOption = Annotated[
    str | None, typer.Option("--remote-dir", help="Path to the remote directory to sync")
]
IntervalOption = Annotated[
    int | None,
    typer.Option(
        "--sync-interval",
        min=1,
        help="How often to auto sync the directories, in seconds (default: 300)",
    ),
]
DebounceOption = Annotated[
    int | None,
    typer.Option(
        "--debounce",
        min=0,
        help="Sync debounce time between file changes, in seconds (default: 30)",
    ),
]


def _get_config() -> DaemonConfig:
    """Resolve and cache the config on first use; sets up logging."""
    global _config
    if _config is None:
        try:
            _config = load_config(_config_path)
        except ConfigurationError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        setup_logging(_config.log_level)
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to rclone-bisync.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config, _config_path
    _config_path = config
    _config = None


def _validate_target(directory: str | None, remote_dir: str | None) -> SyncTarget:
    try:
        return SyncTarget.validated(directory, remote_dir)
    except ConfigurationError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _resync_once(target: SyncTarget, cfg: DaemonConfig) -> bool:
    """Run one full-baseline bisync outside the daemon loop."""
    coordinator = SyncCoordinator(
        target, runner=RcloneRunner(cfg.rclone_binary), debounce_seconds=cfg.debounce
    )
    result = coordinator.request_sync(resync=True)
    return result is not None and result.ok


def _install_signal_handlers(daemon: Daemon) -> None:
    def _handle(signum: int, frame: FrameType | None) -> None:
        rprint(f"[yellow]Received {signal.Signals(signum).name}, shutting down...[/yellow]")
        daemon.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


@app.command()
def run(
    directory: DirOption = None,
    remote_dir: RemoteDirOption = None,
    sync_interval: IntervalOption = None,
    debounce: DebounceOption = None,
) -> None:
    """Start the daemon: sync on an interval and whenever local files change."""
    cfg = _get_config()
    target = _validate_target(directory, remote_dir)

    daemon = Daemon(
        target,
        sync_interval=sync_interval if sync_interval is not None else cfg.sync_interval,
        debounce=debounce if debounce is not None else cfg.debounce,
        poll_interval=cfg.watch.poll_interval,
        runner=RcloneRunner(cfg.rclone_binary),
    )
    _install_signal_handlers(daemon)
    daemon.run_forever()


@app.command()
def register(
    directory: DirOption = None,
    remote_dir: RemoteDirOption = None,
    sync_interval: IntervalOption = None,
    debounce: DebounceOption = None,
) -> None:
    """Register the daemon as a systemd user service, start it and run a resync."""
    cfg = _get_config()
    target = _validate_target(directory, remote_dir)

    rprint("[bold]Adding daemon to systemd[/bold]")
    try:
        unit = register_service(
            target,
            sync_interval=sync_interval if sync_interval is not None else cfg.sync_interval,
            debounce=debounce if debounce is not None else cfg.debounce,
            service=cfg.service,
        )
    except ServiceError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    rprint(f"[green]Service unit:[/green] {unit}")

    if not _resync_once(target, cfg):
        raise typer.Exit(1)


@app.command()
def resync(
    directory: DirOption = None,
    remote_dir: RemoteDirOption = None,
) -> None:
    """Run a single full-baseline bisync and exit."""
    cfg = _get_config()
    target = _validate_target(directory, remote_dir)
    if not _resync_once(target, cfg):
        raise typer.Exit(1)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default rclone-bisync.yaml in current directory."""
    target = Path(CONFIG_FILENAME)
    if target.exists() and not force:
        rprint(f"[yellow]{CONFIG_FILENAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
