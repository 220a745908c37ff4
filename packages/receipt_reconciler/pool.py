"""Receipt discovery and the pool of unassigned receipts."""

from __future__ import annotations

from collections.abc import Iterable
from os import PathLike
from pathlib import Path

from .config import DEFAULT_RECEIPT_EXT
from .logging_setup import get_logger

_logger = get_logger("receipt_reconciler.pool")


def scan_receipts(directory: str | PathLike[str], ext: str = DEFAULT_RECEIPT_EXT) -> list[Path]:
    """List files directly inside ``directory`` whose extension matches ``ext``.

    The comparison ignores case (``.PDF`` matches ``pdf``). Results are sorted
    by path. A missing or unreadable directory yields an empty list.
    """

    wanted = "." + ext.lstrip(".").lower()
    root = Path(directory)
    try:
        entries = list(root.iterdir())
    except OSError:
        _logger.warning("receipt scan failed dir=%s", root, exc_info=True)
        return []
    found = sorted(p for p in entries if p.suffix.lower() == wanted and p.is_file())
    _logger.debug("receipt scan dir=%s found=%d", root, len(found))
    return found


def available_receipts(scanned: Iterable[Path], assigned: set[str]) -> list[Path]:
    """Return scanned receipts that no row currently holds.

    Identity is the full path string, the same form stored in row metadata.
    """

    return [p for p in scanned if str(p) not in assigned]


__all__ = ["scan_receipts", "available_receipts"]
