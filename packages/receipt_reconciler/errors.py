"""Exception types raised by the reconciliation engine.

Engine modules raise these where a failure is detected; the terminal UI and
the CLI catch them, report a concise message, and keep the session running
(or exit non-zero for startup failures).
"""

from __future__ import annotations

from pathlib import Path


class ReconcilerError(Exception):
    """Base class for all engine errors."""


class LedgerLoadError(ReconcilerError):
    """The ledger file cannot be used to start a session."""

    def __init__(self, path: str | Path, reason: str) -> None:
        super().__init__(f"cannot load ledger {str(path)!r}: {reason}")
        self.path = Path(path)
        self.reason = reason


class NamingError(ReconcilerError, ValueError):
    """A canonical receipt name cannot be computed for a row."""


class RenameError(ReconcilerError):
    """Renaming a receipt on disk failed; metadata was left untouched."""

    def __init__(self, source: str, target: str, reason: str) -> None:
        super().__init__(f"cannot rename {source!r} -> {target!r}: {reason}")
        self.source = source
        self.target = target
        self.reason = reason


class StateSaveError(ReconcilerError):
    """Writing the state file failed."""


class AssignmentError(ReconcilerError, ValueError):
    """An assignment would break the one-receipt-per-row invariant."""


class ReceiptAlreadyAssignedError(AssignmentError):
    def __init__(self, index: int, current: str) -> None:
        super().__init__(
            f"row {index} already holds {current!r}; clear it before assigning another receipt"
        )
        self.index = index
        self.current = current


class ReceiptUnavailableError(AssignmentError):
    def __init__(self, receipt: str) -> None:
        super().__init__(
            f"receipt {receipt!r} is not in the pool (missing on disk or assigned to another row)"
        )
        self.receipt = receipt


__all__ = [
    "ReconcilerError",
    "LedgerLoadError",
    "NamingError",
    "RenameError",
    "StateSaveError",
    "AssignmentError",
    "ReceiptAlreadyAssignedError",
    "ReceiptUnavailableError",
]
