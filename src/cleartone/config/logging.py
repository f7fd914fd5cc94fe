"""Logging set-up for the command line."""

from __future__ import annotations

import logging
import os
from typing import Final

from .errors import ConfigurationError

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
# chatty at INFO; only their warnings reach the console
QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "hishel", "alembic.runtime.migration")


def resolve_log_level(default: int = logging.INFO) -> int:
    """Level named by ``CLEARTONE_LOG_LEVEL`` (``DEBUG``, ``WARNING``, ...), else ``default``."""

    name = os.getenv("CLEARTONE_LOG_LEVEL")
    if name is None or not name.strip():
        return default
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"CLEARTONE_LOG_LEVEL is not a logging level: {name!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Attach a terse stderr handler to the root logger.

    Without ``level`` the environment decides. Like ``logging.basicConfig`` this
    is a no-op once handlers exist, unless ``force=True``.
    """

    logging.basicConfig(
        level=resolve_log_level() if level is None else level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
