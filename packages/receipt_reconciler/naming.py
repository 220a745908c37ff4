"""Canonical receipt names and the rename operation.

A receipt assigned to ledger row ``index`` should be called::

    {index:03d}-{date}{amount}EUR-{description}.{ext}

where ``date``, ``description`` and ``amount`` are cells 0, 2 and 3 of the
row and ``ext`` is the receipt extension (``pdf`` unless configured
otherwise). Date and amount are used verbatim; ``/`` in the description becomes
``_``. The file stays in the directory it is currently in.
"""

from __future__ import annotations

import os

from .config import DEFAULT_RECEIPT_EXT
from .errors import NamingError, RenameError
from .logging_setup import get_logger
from .models import LedgerRow, RowMetadata

DATE_CELL = 0
DESCRIPTION_CELL = 2
AMOUNT_CELL = 3
CURRENCY_MARKER = "EUR"

_logger = get_logger("receipt_reconciler.naming")


def sanitize(value: str) -> str:
    return value.replace("/", "_")


def receipt_suffix(ext: str = DEFAULT_RECEIPT_EXT) -> str:
    return "." + ext.lstrip(".").lower()


def canonical_name(index: int, row: LedgerRow, *, ext: str = DEFAULT_RECEIPT_EXT) -> str:
    """Return the canonical file name (no directory) for row ``index``.

    Raises :class:`NamingError` when the row is too short or when a verbatim
    cell would smuggle a path separator into the name.
    """

    if index < 0:
        raise NamingError(f"row index must be non-negative, got {index}")
    cells = row.cells
    if len(cells) <= AMOUNT_CELL:
        raise NamingError(
            f"row {index} has {len(cells)} cells; naming needs at least {AMOUNT_CELL + 1}"
        )
    name = (
        f"{index:03d}-{cells[DATE_CELL]}{cells[AMOUNT_CELL]}{CURRENCY_MARKER}"
        f"-{sanitize(cells[DESCRIPTION_CELL])}{receipt_suffix(ext)}"
    )
    if "/" in name or os.sep in name or (os.altsep and os.altsep in name):
        raise NamingError(f"canonical name for row {index} contains a path separator: {name!r}")
    return name


def target_path(
    index: int, row: LedgerRow, receipt: str, *, ext: str = DEFAULT_RECEIPT_EXT
) -> str:
    """Return the full target path for ``receipt`` once renamed for row ``index``."""

    return os.path.join(os.path.dirname(receipt), canonical_name(index, row, ext=ext))


def is_canonical(
    index: int, row: LedgerRow, receipt: str | None, *, ext: str = DEFAULT_RECEIPT_EXT
) -> bool:
    """True when nothing is assigned or the receipt already has its canonical path."""

    if receipt is None:
        return True
    try:
        return target_path(index, row, receipt, ext=ext) == receipt
    except NamingError:
        return False


def _same_file(a: str, b: str) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def rename_receipt(
    meta: RowMetadata, index: int, row: LedgerRow, *, ext: str = DEFAULT_RECEIPT_EXT
) -> str | None:
    """Rename the receipt assigned in ``meta`` to its canonical name.

    Returns the (possibly unchanged) receipt path, or ``None`` when no receipt
    is assigned. ``meta.receipt`` is updated only after the filesystem rename
    succeeded; any failure raises :class:`RenameError` and leaves ``meta``
    untouched. Renaming an already canonical receipt does not touch the disk.
    """

    current = meta.receipt
    if current is None:
        return None

    target = target_path(index, row, current, ext=ext)
    if target == current:
        _logger.debug("rename skipped, already canonical row=%d path=%s", index, current)
        return current

    # os.rename silently replaces an existing file on POSIX; refuse instead.
    if os.path.lexists(target) and not _same_file(current, target):
        raise RenameError(current, target, "target already exists")

    try:
        os.rename(current, target)
    except OSError as e:
        raise RenameError(current, target, e.strerror or str(e)) from e

    _logger.info("receipt renamed row=%d %s -> %s", index, current, target)
    meta.receipt = target
    return target


__all__ = [
    "sanitize",
    "receipt_suffix",
    "canonical_name",
    "target_path",
    "is_canonical",
    "rename_receipt",
]
