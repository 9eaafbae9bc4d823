"""Logging helpers for the gradebook.

Everything logs under the ``gradebook`` logger or one of its children
(``gradebook.store``, ``gradebook.migration``, ``gradebook.backup``). The
library never touches the root logger; ``configure_logging`` is meant for the
CLI and for quick scripts.
"""

from __future__ import annotations

import logging
from typing import IO

LOGGER_NAME = "gradebook"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or the child ``gradebook.<name>``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


def configure_logging(
    level: str | None = None,
    *,
    force: bool = False,
    stream: IO[str] | None = None,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = "%H:%M:%S",
) -> logging.Logger:
    """Attach a stream handler to the gradebook logger, once.

    Later calls only change the level unless ``force`` is set, in which case
    existing handlers are replaced. Messages go to stderr by default so they
    never mix with command output.
    """
    global _configured
    logger = get_logger()
    if level:
        logger.setLevel(level.upper())
    if _configured and not force:
        return logger
    if force:
        logger.handlers.clear()
    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
        logger.addHandler(handler)
    logger.propagate = False  # Avoid duplicate lines if root configured.
    _configured = True
    return logger
