"""State file I/O.

The session's durable projection (:class:`PersistedState`) lives next to the
ledger as pretty-printed JSON so it can be inspected and edited by hand.

Reading never fails: a missing, unreadable, malformed, or schema-mismatched
file yields the default state and the row metadata repair takes it from
there. Writing is atomic (``.tmp`` first, then ``os.replace``) and raises
:class:`StateSaveError` on failure.
"""

from __future__ import annotations

import contextlib
import os
from os import PathLike
from pathlib import Path

from pydantic import ValidationError

from .config import DEFAULT_STATE_FILE
from .errors import StateSaveError
from .logging_setup import get_logger
from .models import STATE_SCHEMA_VERSION, PersistedState

_logger = get_logger("receipt_reconciler.persistence")


def state_file_path(
    ledger_path: str | PathLike[str], *, file_name: str = DEFAULT_STATE_FILE
) -> Path:
    """Return ``<ledger_dir>/<file_name>`` for the given ledger file."""

    return Path(ledger_path).parent / file_name


def load_state(path: str | PathLike[str]) -> PersistedState:
    p = Path(path)
    if not p.exists():
        _logger.debug("no state file at %s; starting fresh", p)
        return PersistedState()

    try:
        text = p.read_text(encoding="utf-8")
        state = PersistedState.model_validate_json(text)
    except (OSError, UnicodeDecodeError, ValidationError):
        _logger.warning("state file unreadable; starting fresh path=%s", p, exc_info=True)
        return PersistedState()

    if state.schema_version != STATE_SCHEMA_VERSION:
        _logger.warning(
            "state file schema mismatch; starting fresh path=%s found=%d expected=%d",
            p,
            state.schema_version,
            STATE_SCHEMA_VERSION,
        )
        return PersistedState()

    _logger.info("state loaded path=%s rows=%d", p, len(state.row_metadata))
    return state


def save_state(path: str | PathLike[str], state: PersistedState) -> Path:
    p = Path(path)
    tmp = p.with_suffix(p.suffix + ".tmp")
    try:
        tmp.write_text(state.model_dump_json(indent=2) + "\n", encoding="utf-8")
        os.replace(tmp, p)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise StateSaveError(f"cannot write state file {os.fspath(p)!r}: {e}") from e
    _logger.info("state saved path=%s rows=%d", p, len(state.row_metadata))
    return p


__all__ = ["state_file_path", "load_state", "save_state"]
