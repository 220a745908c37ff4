"""Ledger loading: delimited bytes to immutable rows.

Parsing is flexible (rows may have any number of cells) and decoding is
loss-tolerant (invalid UTF-8 is replaced, never fatal). Only the file-level
checks in :func:`load_ledger` can stop a session from starting.
"""

from __future__ import annotations

import csv
import io
import sys
from os import PathLike
from pathlib import Path

from .config import DEFAULT_DELIMITER, normalize_delimiter
from .errors import LedgerLoadError
from .logging_setup import get_logger
from .models import Ledger, LedgerRow

LEDGER_EXTENSION = "csv"

_logger = get_logger("receipt_reconciler.ledger")

# Ledger cells have no length limit; the csv module defaults to 128 KiB.
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


def decode_lossy(data: bytes) -> str:
    """Decode UTF-8, replacing invalid sequences with U+FFFD.

    A leading byte-order mark is dropped so it never leaks into the first cell.
    """

    return data.decode("utf-8-sig", errors="replace")


def parse_table(
    data: bytes,
    delimiter: str = DEFAULT_DELIMITER,
    *,
    has_header: bool = True,
) -> list[LedgerRow]:
    """Parse delimited ``data`` into ledger rows.

    Blank lines are skipped. When ``has_header`` is true the first record is
    the table header and is not returned as a row.
    """

    delimiter = normalize_delimiter(delimiter)
    reader = csv.reader(io.StringIO(decode_lossy(data), newline=""), delimiter=delimiter)

    rows: list[LedgerRow] = []
    header_pending = has_header
    for record in reader:
        if not record:
            continue
        if header_pending:
            header_pending = False
            continue
        rows.append(LedgerRow(cells=tuple(record)))
    return rows


def max_cells(rows: list[LedgerRow] | tuple[LedgerRow, ...]) -> int:
    return max((len(r.cells) for r in rows), default=0)


def load_ledger(
    path: str | PathLike[str],
    *,
    delimiter: str = DEFAULT_DELIMITER,
    has_header: bool = True,
) -> Ledger:
    """Read and parse the ledger file at ``path``.

    Raises :class:`LedgerLoadError` when the path lacks the ``.csv``
    extension, does not exist, is not a regular file, cannot be read, or cannot
    be parsed as delimited text.
    The returned ledger carries an absolute path so receipt paths derived from
    its directory compare equal across runs.
    """

    p = Path(path).expanduser()
    if p.suffix.lower() != f".{LEDGER_EXTENSION}":
        raise LedgerLoadError(p, f"expected a .{LEDGER_EXTENSION} file")
    if not p.exists():
        raise LedgerLoadError(p, "file not found")
    if not p.is_file():
        raise LedgerLoadError(p, "not a regular file")
    try:
        data = p.read_bytes()
    except OSError as e:
        raise LedgerLoadError(p, e.strerror or str(e)) from e

    try:
        rows = tuple(parse_table(data, delimiter, has_header=has_header))
    except csv.Error as e:
        raise LedgerLoadError(p, f"malformed ledger: {e}") from e
    ledger = Ledger(path=p.resolve(), rows=rows, max_cells=max_cells(rows))
    _logger.info(
        "ledger loaded path=%s rows=%d max_cells=%d", ledger.path, len(rows), ledger.max_cells
    )
    return ledger


__all__ = ["LEDGER_EXTENSION", "decode_lossy", "parse_table", "max_cells", "load_ledger"]
