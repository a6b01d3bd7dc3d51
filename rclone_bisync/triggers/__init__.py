"""Timer primitives driving sync requests: debounce delays and repeating intervals."""

from rclone_bisync.triggers.delay import Debouncer, Delay, set_timeout
from rclone_bisync.triggers.interval import Interval, set_interval

__all__ = [
    "Debouncer",
    "Delay",
    "Interval",
    "set_interval",
    "set_timeout",
]
