"""Logging helpers shared by every module."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def configure_logging(level: str = "INFO", fmt: Optional[str] = None) -> None:
    """
    Install a single stream handler on the ``ensinor`` root logger.

    Safe to call more than once; only the level is updated after the first call.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        fmt: Optional format string (defaults to LOG_FORMAT)
    """
    global _configured
    root = logging.getLogger("ensinor")
    root.setLevel(level.upper())
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or LOG_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
