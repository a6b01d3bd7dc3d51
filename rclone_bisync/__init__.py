"""rclone-bisync-daemon: keep a local directory in bisync with an rclone remote."""

__version__ = "0.1.0"
