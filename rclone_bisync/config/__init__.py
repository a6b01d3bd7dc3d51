from .loader import DEFAULT_CONFIG_TEMPLATE, load_config
from .models import (
    ConfigurationError,
    DaemonConfig,
    ServiceConfig,
    SyncTarget,
    WatchConfig,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_CONFIG_TEMPLATE",
    "DaemonConfig",
    "ServiceConfig",
    "SyncTarget",
    "WatchConfig",
    "load_config",
]
