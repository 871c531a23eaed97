"""Logging for the budget engine.

The calculation modules are meant to be embedded in a host application, so
they log through ``get_logger("budget_engine.<module>")`` and never install
handlers of their own. Until someone calls :func:`configure_logging` the
``budget_engine`` logger only carries a ``NullHandler`` and stays quiet.

The ``budget-engine`` CLI calls :func:`configure_logging` once on startup,
which sends records to stderr; stdout carries the JSON result only.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT = "budget_engine"
_LEVEL_ENV = "BUDGET_ENGINE_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    """Resolve a level given as a number, a name or ``None`` (read the env).

    Unknown names fall back to INFO rather than failing the run.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level

    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelNamesMapping().get(name)
    return resolved if resolved is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Route ``budget_engine`` records to one stream handler.

    Only the first call has an effect; later calls return immediately so an
    entrypoint and a host application cannot stack duplicate handlers.

    ``level`` defaults to ``$BUDGET_ENGINE_LOG_LEVEL`` (INFO when unset).
    ``stream`` defaults to whatever ``sys.stderr`` is at call time.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_ROOT)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # The handler above is the only sink; the root logger must not repeat it.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Logger for an engine module; silent until :func:`configure_logging` runs."""

    root = logging.getLogger(_ROOT)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


def _reset_for_tests() -> None:
    global _CONFIGURED
    logger = logging.getLogger(_ROOT)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _CONFIGURED = False
