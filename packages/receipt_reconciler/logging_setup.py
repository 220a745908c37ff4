"""Logging for ``receipt_reconciler``.

Every module asks :func:`get_logger` for ``"receipt_reconciler.<module>"`` and
logs; none of them attach handlers. Output is wired up once, by the CLI, via
:func:`configure_logging`:

- the level comes from the argument, else ``RECEIPT_RECONCILER_LOG_LEVEL``,
  else ``WARNING`` (the interactive prompt shares the terminal with stderr, and
  the console already reports each command's outcome);
- records go to ``RECEIPT_RECONCILER_LOG_FILE`` when set, else to ``stream``.

Until then the package logger only carries a ``NullHandler``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "receipt_reconciler"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_DEFAULT_LEVEL = logging.WARNING

LOG_LEVEL_ENV = "RECEIPT_RECONCILER_LOG_LEVEL"
LOG_FILE_ENV = "RECEIPT_RECONCILER_LOG_FILE"

_configured = False


def _level_from_name(value: str) -> int | None:
    value = value.strip().upper()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else None


def resolve_level(level: int | str | None = None) -> int:
    """Turn an explicit level, the env override, or the default into an ``int``.

    Unknown level names fall through to the next source instead of failing.
    """

    if isinstance(level, int):
        return level
    for candidate in (level, os.getenv(LOG_LEVEL_ENV)):
        if candidate:
            parsed = _level_from_name(candidate)
            if parsed is not None:
                return parsed
    return _DEFAULT_LEVEL


def _make_handler(stream: IO[str] | None) -> logging.Handler:
    log_file = (os.getenv(LOG_FILE_ENV) or "").strip()
    if log_file:
        return logging.FileHandler(os.path.expanduser(log_file), encoding="utf-8")
    return logging.StreamHandler(stream if stream is not None else sys.stderr)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach the package's single handler; later calls are no-ops."""

    global _configured
    if _configured:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = _make_handler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    # Records stop at the package logger; the root logger never sees them.
    pkg_logger.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _configured and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LOG_LEVEL_ENV", "LOG_FILE_ENV", "configure_logging", "get_logger", "resolve_level"]
