"""Data models for ``receipt_reconciler``.

Ledger rows and the per-frame read model are frozen dataclasses: they are
produced once and never mutated. Row metadata and the persisted state are
Pydantic models because they round-trip through the JSON state file and must
be validated when read back.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Bump only when the on-disk state JSON shape changes.
STATE_SCHEMA_VERSION: int = 1


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerRow:
    """One record of the delimited input table.

    A row has no identity beyond its 0-based position in the ledger. Cells
    are kept verbatim; rows may differ in length.
    """

    cells: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.cells)


@dataclass(frozen=True, slots=True)
class Ledger:
    """The immutable, ordered rows loaded for a session."""

    path: Path
    rows: tuple[LedgerRow, ...]
    max_cells: int

    @property
    def directory(self) -> Path:
        return self.path.parent

    def __len__(self) -> int:
        return len(self.rows)

    def row(self, index: int) -> LedgerRow:
        if not 0 <= index < len(self.rows):
            raise IndexError(f"row index {index} out of range (ledger has {len(self.rows)} rows)")
        return self.rows[index]


# ---------------------------------------------------------------------------
# Row metadata and persisted state
# ---------------------------------------------------------------------------


class RowMetadata(BaseModel):
    """Mutable per-row state: the hidden flag and the assigned receipt path.

    ``receipt`` holds the full path of the receipt file; the full path is the
    receipt's identity for assignment and pool membership.
    """

    model_config = ConfigDict(extra="ignore")

    hidden: bool = False
    receipt: str | None = None


class PersistedState(BaseModel):
    """Top-level schema of the ``state.json`` file next to the ledger."""

    model_config = ConfigDict(extra="ignore")

    schema_version: int = STATE_SCHEMA_VERSION
    show_hidden: bool = False
    row_metadata: list[RowMetadata] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Read model handed to presentation layers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DisplayRow:
    """A single displayed row, already resolved to its underlying index."""

    ordinal: int
    index: int
    cells: tuple[str, ...]
    hidden: bool
    receipt_filename: str | None
    name_correct: bool


@dataclass(frozen=True, slots=True)
class Frame:
    """Everything a front end needs to draw one screen of the session."""

    max_cells: int
    visible_count: int
    total_rows: int
    show_hidden: bool
    rows: tuple[DisplayRow, ...]


@dataclass(frozen=True, slots=True)
class SaveOutcome:
    """Result of ``Session.save``; failures are reported, not raised."""

    path: Path
    ok: bool
    error: str | None = None


__all__ = [
    "STATE_SCHEMA_VERSION",
    "LedgerRow",
    "Ledger",
    "RowMetadata",
    "PersistedState",
    "DisplayRow",
    "Frame",
    "SaveOutcome",
]
