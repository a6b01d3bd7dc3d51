"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from rclone_bisync.log import LOGGER_NAME, setup_logging


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in _rich_handlers(logger):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def _rich_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [h for h in logger.handlers if isinstance(h, RichHandler)]


def test_installs_single_handler():
    setup_logging("info")
    logger = setup_logging("debug")
    assert len(_rich_handlers(logger)) == 1
    assert logger.level == logging.DEBUG


def test_warn_maps_to_warning():
    logger = setup_logging("warn")
    assert logger.level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    logger = setup_logging("chatty")
    assert logger.level == logging.INFO


def test_child_loggers_inherit():
    setup_logging("error")
    child = logging.getLogger(f"{LOGGER_NAME}.coordinator")
    assert child.getEffectiveLevel() == logging.ERROR
