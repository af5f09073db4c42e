"""Logging for the ``statement_ingest`` package.

Library modules only call ``get_logger("statement_ingest.<module>")``; the
host (the CLI or the chat service) calls ``configure_logging()`` once. Until
then the package logger carries a ``NullHandler`` and stays silent.

Log lines are ``event key=value ...`` pairs, e.g.
``ingest:done bank=mbank created=2 duplicates=0``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_ingest"
LEVEL_ENV = "STATEMENT_INGEST_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Client libraries log every HTTP request at INFO.
_CHATTY_LOGGERS: tuple[str, ...] = ("openai", "httpx", "httpcore")

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Map an int, a level name or a numeric string to a level; INFO otherwise.

    ``None`` reads ``STATEMENT_INGEST_LOG_LEVEL``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV)
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        mapped = logging.getLevelNamesMapping().get(name)
        if mapped is not None:
            return mapped
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Logger:
    """Attach one stream handler to the package logger and return it.

    Repeated calls are no-ops unless ``force`` is set, which replaces the
    handler (useful when the host swaps ``sys.stderr``).
    """

    global _configured
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _configured and not force:
        return logger

    for h in list(logger.handlers):
        logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    if resolved > logging.DEBUG:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
