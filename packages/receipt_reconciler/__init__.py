"""Public interface for the ``receipt_reconciler`` package.

This module re-exports the session, the engine building blocks, the models,
and the error types as the stable import surface. There is no runtime logic
here, only symbol re-exports.
"""

from .errors import (
    AssignmentError,
    LedgerLoadError,
    NamingError,
    ReceiptAlreadyAssignedError,
    ReceiptUnavailableError,
    ReconcilerError,
    RenameError,
    StateSaveError,
)
from .ledger import load_ledger, parse_table
from .metadata import RowMetadataStore
from .models import (
    DisplayRow,
    Frame,
    Ledger,
    LedgerRow,
    PersistedState,
    RowMetadata,
    SaveOutcome,
)
from .naming import canonical_name, rename_receipt, sanitize, target_path
from .persistence import load_state, save_state, state_file_path
from .pool import available_receipts, scan_receipts
from .session import AssignmentGesture, ReconciliationSession
from .visibility import VisibilityIndex, visible_count

__all__ = [
    # Session
    "ReconciliationSession",
    "AssignmentGesture",
    # Engine
    "parse_table",
    "load_ledger",
    "RowMetadataStore",
    "VisibilityIndex",
    "visible_count",
    "sanitize",
    "canonical_name",
    "target_path",
    "rename_receipt",
    "scan_receipts",
    "available_receipts",
    "state_file_path",
    "load_state",
    "save_state",
    # Models
    "LedgerRow",
    "Ledger",
    "RowMetadata",
    "PersistedState",
    "DisplayRow",
    "Frame",
    "SaveOutcome",
    # Errors
    "ReconcilerError",
    "LedgerLoadError",
    "NamingError",
    "RenameError",
    "StateSaveError",
    "AssignmentError",
    "ReceiptAlreadyAssignedError",
    "ReceiptUnavailableError",
]
