"""Logging setup shared by all cart modules."""
from __future__ import annotations

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("cartsync")


def setup_logging(level: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the ``cartsync`` logger once.

    ``level`` falls back to ``LOG_LEVEL`` and then to INFO. Calling this again
    only updates the level.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
