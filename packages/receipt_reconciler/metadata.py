"""Per-row metadata: hidden flags and receipt assignments.

The store holds exactly one :class:`RowMetadata` per ledger row, in ledger
order. It is a plain container: it validates indices but not the
one-receipt-per-row invariant, which the session enforces on its single
assignment path.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence

from .config import DEFAULT_RECEIPT_EXT
from .logging_setup import get_logger
from .models import LedgerRow, RowMetadata
from .naming import is_canonical

_logger = get_logger("receipt_reconciler.metadata")


class RowMetadataStore:
    def __init__(self, entries: list[RowMetadata]) -> None:
        self._entries = entries

    @classmethod
    def defaults(cls, row_count: int) -> RowMetadataStore:
        return cls([RowMetadata() for _ in range(row_count)])

    @classmethod
    def load(cls, persisted: Sequence[RowMetadata], row_count: int) -> RowMetadataStore:
        """Adopt persisted metadata, or reset everything when it is too short.

        A persisted list shorter than the ledger means the ledger changed
        since the last save. Old indices can no longer be trusted, so every
        row goes back to defaults; nothing is merged. Entries beyond the
        ledger's last row are dropped so the store always matches the ledger.
        A receipt claimed by several rows (a hand-edited state file) stays with
        the first of them; the later rows are cleared.
        """

        if len(persisted) < row_count:
            if persisted:
                _logger.info(
                    "row metadata reset: persisted=%d ledger_rows=%d", len(persisted), row_count
                )
            return cls.defaults(row_count)
        if len(persisted) > row_count:
            _logger.info(
                "row metadata truncated: persisted=%d ledger_rows=%d", len(persisted), row_count
            )
        store = cls([m.model_copy() for m in persisted[:row_count]])
        store._drop_duplicate_receipts()
        return store

    def _drop_duplicate_receipts(self) -> None:
        seen: set[str] = set()
        for i, meta in enumerate(self._entries):
            if meta.receipt is None:
                continue
            if meta.receipt in seen:
                _logger.warning("duplicate receipt cleared row=%d path=%s", i, meta.receipt)
                meta.receipt = None
            else:
                seen.add(meta.receipt)

    # ---- access -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RowMetadata]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> RowMetadata:
        return self._entries[self._check(index)]

    def _check(self, index: int) -> int:
        if not 0 <= index < len(self._entries):
            raise IndexError(
                f"row index {index} out of range (metadata has {len(self._entries)} rows)"
            )
        return index

    def entries(self) -> list[RowMetadata]:
        """Return copies of all entries, e.g. for persistence."""

        return [m.model_copy() for m in self._entries]

    def hidden_flags(self) -> list[bool]:
        return [m.hidden for m in self._entries]

    def assigned_receipts(self) -> set[str]:
        return {m.receipt for m in self._entries if m.receipt is not None}

    def holder_of(self, receipt: str) -> int | None:
        for i, m in enumerate(self._entries):
            if m.receipt == receipt:
                return i
        return None

    def receipt_filename(self, index: int) -> str | None:
        receipt = self[index].receipt
        if receipt is None:
            return None
        return os.path.basename(receipt) or None

    def is_name_correct(
        self, index: int, row: LedgerRow, *, ext: str = DEFAULT_RECEIPT_EXT
    ) -> bool:
        return is_canonical(index, row, self[index].receipt, ext=ext)

    # ---- mutation -----------------------------------------------------------

    def set_hidden(self, index: int, value: bool) -> None:
        self[index].hidden = value

    def toggle_hidden(self, index: int) -> bool:
        meta = self[index]
        meta.hidden = not meta.hidden
        return meta.hidden

    def assign_receipt(self, index: int, path: str) -> None:
        self[index].receipt = path

    def clear_receipt(self, index: int) -> str | None:
        meta = self[index]
        previous, meta.receipt = meta.receipt, None
        return previous

    def clear_all(self) -> int:
        cleared = 0
        for meta in self._entries:
            if meta.receipt is not None:
                meta.receipt = None
                cleared += 1
        return cleared


__all__ = ["RowMetadataStore"]
