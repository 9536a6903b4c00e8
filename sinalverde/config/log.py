"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int | str) -> None:
    """Install a single stream handler on the root logger at *level*."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
