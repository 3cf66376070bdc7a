"""
utils/logger.py
---------------
Process-wide logging setup.
Modules call `get_logger(__name__)`; the root handler is installed on first use
at the level named by LOG_LEVEL.
"""

import logging
import sys

from config import LOG_LEVEL

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_initialized = False

# Libraries that log every HTTP round-trip at INFO.
_NOISY_LOGGERS = ("httpx", "urllib3", "apscheduler")


def _init_logging() -> None:
    global _initialized
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root = logging.getLogger()
    root.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    root.addHandler(handler)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A logger that writes through the shared stdout handler.
    """
    _init_logging()
    return logging.getLogger(name)
