"""The reconciliation session: explicit state plus the commands that mutate it.

A :class:`ReconciliationSession` owns the ledger, the row metadata, the
receipt pool, and the visibility index for one ledger file. Front ends hold a
reference to it, read :meth:`ReconciliationSession.frame` to draw, and call
its commands. Every mutation goes through a command so that derived state
(pool, visibility) is rebuilt from the authoritative metadata right after.

Assignments have a single write path, :meth:`ReconciliationSession.assign`,
which enforces the one-receipt-per-row invariant: a row that already holds a
receipt must be cleared first, and only receipts currently in the pool can be
assigned.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from os import PathLike
from pathlib import Path

from .config import DEFAULT_DELIMITER, DEFAULT_RECEIPT_EXT, DEFAULT_STATE_FILE
from .errors import ReceiptAlreadyAssignedError, ReceiptUnavailableError, StateSaveError
from .ledger import load_ledger
from .logging_setup import get_logger
from .metadata import RowMetadataStore
from .models import DisplayRow, Frame, Ledger, PersistedState, SaveOutcome
from .naming import rename_receipt
from .persistence import load_state, save_state, state_file_path
from .pool import available_receipts, scan_receipts
from .viewer import open_in_viewer
from .visibility import VisibilityIndex, visible_count

_logger = get_logger("receipt_reconciler.session")


class AssignmentGesture:
    """Transient roles of a pick-and-drop assignment.

    ``candidate_source`` is a position in the receipt pool; ``candidate_target``
    is a row index that can accept a receipt (it holds none).
    """

    __slots__ = ("candidate_source", "candidate_target")

    def __init__(self) -> None:
        self.candidate_source: int | None = None
        self.candidate_target: int | None = None

    @property
    def armed(self) -> bool:
        return self.candidate_source is not None and self.candidate_target is not None

    def reset(self) -> None:
        self.candidate_source = None
        self.candidate_target = None

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return (
            f"AssignmentGesture(source={self.candidate_source!r}, "
            f"target={self.candidate_target!r})"
        )


class ReconciliationSession:
    def __init__(
        self,
        ledger: Ledger,
        metadata: RowMetadataStore,
        *,
        state_path: Path,
        show_hidden: bool = False,
        receipt_ext: str = DEFAULT_RECEIPT_EXT,
        viewer: Callable[[str], bool] = open_in_viewer,
    ) -> None:
        if len(metadata) != len(ledger):
            raise ValueError(
                f"metadata has {len(metadata)} rows but the ledger has {len(ledger)}"
            )
        self._ledger = ledger
        self._metadata = metadata
        self._state_path = state_path
        self._show_hidden = show_hidden
        self._receipt_ext = receipt_ext
        self._viewer = viewer
        self._pool: tuple[Path, ...] = ()
        self._visibility = VisibilityIndex(())
        self._dirty = False
        self.gesture = AssignmentGesture()

        self.refresh_pool()
        self._refresh_visibility()

    @classmethod
    def open(
        cls,
        ledger_path: str | PathLike[str],
        *,
        delimiter: str = DEFAULT_DELIMITER,
        has_header: bool = True,
        state_file: str = DEFAULT_STATE_FILE,
        receipt_ext: str = DEFAULT_RECEIPT_EXT,
        viewer: Callable[[str], bool] = open_in_viewer,
    ) -> ReconciliationSession:
        """Start a session: load the ledger, then the persisted state, then repair.

        Raises :class:`~receipt_reconciler.errors.LedgerLoadError` when the
        ledger cannot be used. State file problems never fail the open.
        """

        ledger = load_ledger(ledger_path, delimiter=delimiter, has_header=has_header)
        state_path = state_file_path(ledger.path, file_name=state_file)
        state = load_state(state_path)
        metadata = RowMetadataStore.load(state.row_metadata, len(ledger))
        return cls(
            ledger,
            metadata,
            state_path=state_path,
            show_hidden=state.show_hidden,
            receipt_ext=receipt_ext,
            viewer=viewer,
        )

    # ---- read side ----------------------------------------------------------

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def metadata(self) -> RowMetadataStore:
        return self._metadata

    @property
    def state_path(self) -> Path:
        return self._state_path

    @property
    def show_hidden(self) -> bool:
        return self._show_hidden

    @property
    def pool(self) -> tuple[Path, ...]:
        return self._pool

    @property
    def receipt_ext(self) -> str:
        return self._receipt_ext

    @property
    def visibility(self) -> VisibilityIndex:
        return self._visibility

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def total_rows(self) -> int:
        return len(self._ledger)

    @property
    def visible_count(self) -> int:
        """Number of rows not flagged hidden (independent of show-hidden mode)."""

        return visible_count(self._metadata.hidden_flags())

    def display_row(self, ordinal: int, index: int) -> DisplayRow:
        row = self._ledger.row(index)
        meta = self._metadata[index]
        return DisplayRow(
            ordinal=ordinal,
            index=index,
            cells=row.cells,
            hidden=meta.hidden,
            receipt_filename=self._metadata.receipt_filename(index),
            name_correct=self._metadata.is_name_correct(index, row, ext=self._receipt_ext),
        )

    def rows(self) -> Iterator[DisplayRow]:
        for ordinal, index in enumerate(self._visibility):
            yield self.display_row(ordinal, index)

    def row_at(self, ordinal: int) -> DisplayRow:
        return self.display_row(ordinal, self._visibility.resolve(ordinal))

    def frame(self) -> Frame:
        return Frame(
            max_cells=self._ledger.max_cells,
            visible_count=self.visible_count,
            total_rows=self.total_rows,
            show_hidden=self._show_hidden,
            rows=tuple(self.rows()),
        )

    def pool_file(self, ordinal: int) -> Path:
        if not 0 <= ordinal < len(self._pool):
            raise IndexError(f"file number {ordinal} out of range ({len(self._pool)} in pool)")
        return self._pool[ordinal]

    def mismatched_rows(self) -> list[int]:
        """Row indices whose assigned receipt does not carry its canonical name."""

        return [
            i
            for i, row in enumerate(self._ledger.rows)
            if not self._metadata.is_name_correct(i, row, ext=self._receipt_ext)
        ]

    # ---- derived state ------------------------------------------------------

    def _refresh_visibility(self) -> None:
        self._visibility = VisibilityIndex.build(
            self._metadata.hidden_flags(), show_hidden=self._show_hidden
        )

    def refresh_pool(self) -> tuple[Path, ...]:
        """Rescan the ledger directory and drop receipts held by any row."""

        scanned = scan_receipts(self._ledger.directory, self._receipt_ext)
        self._pool = tuple(available_receipts(scanned, self._metadata.assigned_receipts()))
        return self._pool

    def _check_row(self, index: int) -> int:
        self._ledger.row(index)
        return index

    # ---- commands -----------------------------------------------------------

    def toggle_hidden(self, index: int) -> bool:
        hidden = self._metadata.toggle_hidden(self._check_row(index))
        self._dirty = True
        self._refresh_visibility()
        return hidden

    def set_hidden(self, index: int, value: bool) -> None:
        self._metadata.set_hidden(self._check_row(index), value)
        self._dirty = True
        self._refresh_visibility()

    def set_show_hidden(self, value: bool) -> None:
        if value != self._show_hidden:
            self._show_hidden = value
            self._dirty = True
        self._refresh_visibility()

    def assign(self, index: int, receipt: str | PathLike[str]) -> str:
        """Attach ``receipt`` (a pool entry) to row ``index``.

        Raises :class:`ReceiptAlreadyAssignedError` when the row already holds
        a receipt and :class:`ReceiptUnavailableError` when the receipt is not
        in the pool.
        """

        meta = self._metadata[self._check_row(index)]
        if meta.receipt is not None:
            raise ReceiptAlreadyAssignedError(index, meta.receipt)

        wanted = os.fspath(receipt)
        candidates = {wanted, os.path.abspath(wanted)}
        match = next((str(p) for p in self._pool if str(p) in candidates), None)
        if match is None:
            raise ReceiptUnavailableError(wanted)

        self._metadata.assign_receipt(index, match)
        self._dirty = True
        _logger.info("receipt assigned row=%d path=%s", index, match)
        self.refresh_pool()
        return match

    def clear(self, index: int) -> str | None:
        previous = self._metadata.clear_receipt(self._check_row(index))
        if previous is not None:
            self._dirty = True
            _logger.info("receipt cleared row=%d path=%s", index, previous)
        self.refresh_pool()
        return previous

    def clear_all(self) -> int:
        cleared = self._metadata.clear_all()
        if cleared:
            self._dirty = True
            _logger.info("all receipts cleared count=%d", cleared)
        self.refresh_pool()
        return cleared

    def rename(self, index: int) -> str | None:
        """Rename row ``index``'s receipt to its canonical name.

        Returns the receipt's path after the call, or ``None`` when the row
        holds no receipt. Raises :class:`~receipt_reconciler.errors.RenameError`
        or :class:`~receipt_reconciler.errors.NamingError`; the assignment is
        unchanged in either case.
        """

        row = self._ledger.row(index)
        meta = self._metadata[index]
        before = meta.receipt
        after = rename_receipt(meta, index, row, ext=self._receipt_ext)
        if after is not None and after != before:
            self._dirty = True
            self.refresh_pool()
        return after

    def open_receipt(self, index: int) -> bool:
        receipt = self._metadata[self._check_row(index)].receipt
        if receipt is None:
            return False
        return self._viewer(receipt)

    def open_pool_file(self, ordinal: int) -> bool:
        return self._viewer(str(self.pool_file(ordinal)))

    # ---- assignment gesture -------------------------------------------------

    def pick_receipt(self, ordinal: int) -> Path:
        path = self.pool_file(ordinal)
        self.gesture.candidate_source = ordinal
        return path

    def hover_row(self, index: int) -> bool:
        """Offer row ``index`` as drop target; ``False`` means it cannot accept."""

        if self._metadata[self._check_row(index)].receipt is not None:
            self.gesture.candidate_target = None
            return False
        self.gesture.candidate_target = index
        return True

    def release(self) -> int | None:
        """Commit the gesture; return the row that received a receipt, if any."""

        source = self.gesture.candidate_source
        target = self.gesture.candidate_target
        self.gesture.reset()
        if source is None or target is None:
            self.refresh_pool()
            return None
        self.assign(target, self.pool_file(source))
        return target

    # ---- persistence --------------------------------------------------------

    def snapshot(self) -> PersistedState:
        return PersistedState(
            show_hidden=self._show_hidden,
            row_metadata=self._metadata.entries(),
        )

    def save(self) -> SaveOutcome:
        """Write the state file; failures are logged and reported, never raised."""

        try:
            path = save_state(self._state_path, self.snapshot())
        except StateSaveError as e:
            _logger.error("state save failed: %s", e, exc_info=True)
            return SaveOutcome(path=self._state_path, ok=False, error=str(e))
        self._dirty = False
        return SaveOutcome(path=path, ok=True)


__all__ = ["AssignmentGesture", "ReconciliationSession"]
