"""Logging for ``finance_insights``.

The analysis modules are library code: they log through
``get_logger("finance_insights.<module>")`` and never install handlers. Output
only appears once an entrypoint calls :func:`configure_logging`, which the
Typer CLI does from its root callback. Until then the package logger carries a
``NullHandler`` so hosts that never configure logging see nothing.

Level resolution, first match wins: the ``level`` argument, then
``FINANCE_INSIGHTS_LOG_LEVEL``, then ``INFO``. Unknown level names raise
``ValueError`` instead of silently falling back.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "finance_insights"
LEVEL_ENV = "FINANCE_INSIGHTS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the env override) into a numeric logging level."""

    if level is None:
        level = os.getenv(LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    try:
        return logging.getLevelNamesMapping()[name]
    except KeyError:
        raise ValueError(f"unknown log level: {level!r}") from None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach one stderr ``StreamHandler`` to the package logger.

    Safe to call repeatedly; only the first call installs the handler, later
    calls just return the package logger. ``stream`` defaults to
    ``sys.stderr`` so JSON printed to stdout by the CLI stays parseable.
    """

    global _configured
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _configured:
        return logger

    resolved = resolve_level(level)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    # Records are emitted here; the root logger would print them a second time.
    logger.propagate = False

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a package module; adds the ``NullHandler`` on first use."""

    pkg = logging.getLogger(PACKAGE_LOGGER)
    if not _configured and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
