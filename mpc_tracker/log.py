"""
Logging setup for the tracker and planner.

All loggers live under the ``mpc_tracker`` namespace. The level comes from
the ``SIMPLE_CAR_MPC_LOG_LEVEL`` environment variable unless given
explicitly.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_LEVEL_ENV = "SIMPLE_CAR_MPC_LOG_LEVEL"
ROOT_LOGGER_NAME = "mpc_tracker"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def get_log_level() -> int:
    """Get log level from environment variable."""
    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(level: Optional[int] = None, force: bool = False) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Args:
        level: Log level (default: from env or INFO).
        force: Replace the handler if logging was already set up.

    Returns:
        The configured package logger.
    """
    global _handler

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None and not force:
        if level is not None:
            logger.setLevel(level)
        return logger

    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(level if level is not None else get_log_level())
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger below the package namespace.

    ``name`` may be a module ``__name__``; anything outside the namespace
    gets prefixed.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
