"""Logging setup for the daemon and CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "rclone_bisync"

# Config uses "warn"; logging wants WARNING
LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def setup_logging(level: str | int = "info", console: Console | None = None) -> logging.Logger:
    """Attach a single RichHandler to the package logger and set its level.

    Calling this again replaces the handler instead of stacking a second one.
    """
    if isinstance(level, str):
        level = LEVEL_MAP.get(level.lower(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
