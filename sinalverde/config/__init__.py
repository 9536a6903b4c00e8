"""SinalVerde configuration -- environment settings and logging setup."""

from .log import configure_logging
from .settings import Settings, settings

__all__ = [
    "Settings",
    "configure_logging",
    "settings",
]
