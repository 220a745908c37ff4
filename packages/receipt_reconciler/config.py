"""Runtime settings resolved from the environment.

The CLI loads a local ``.env`` (via ``python-dotenv``) before calling
:meth:`ReconcilerSettings.from_env`, so every value below can live either in
the process environment or in that file. Command-line options take precedence
over these settings.

Variables
---------
- ``RECEIPT_RECONCILER_LEDGER``: default ledger path.
- ``RECEIPT_RECONCILER_DELIMITER``: single-byte field delimiter (default ``;``).
  ``tab`` and ``\\t`` select a tab.
- ``RECEIPT_RECONCILER_HAS_HEADER``: whether the first record is a header
  (default true).
- ``RECEIPT_RECONCILER_STATE_FILE``: state file name (default ``state.json``).
- ``RECEIPT_RECONCILER_RECEIPT_EXT``: receipt file extension (default ``pdf``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DELIMITER = ";"
DEFAULT_STATE_FILE = "state.json"
DEFAULT_RECEIPT_EXT = "pdf"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: str | None, *, default: bool) -> bool:
    """Interpret common truthy/falsy spellings; anything else yields ``default``."""

    if value is None:
        return default
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def normalize_delimiter(value: str) -> str:
    """Return a validated single-byte delimiter.

    Raises ``ValueError`` when the value is not exactly one ASCII character
    (after mapping ``tab``/``\\t`` to a tab character).
    """

    if value.lower() in {"tab", "\\t"}:
        value = "\t"
    if len(value) != 1 or len(value.encode("utf-8")) != 1:
        raise ValueError(f"delimiter must be a single-byte character, got {value!r}")
    if value in {'"', "\r", "\n"}:
        raise ValueError(f"delimiter cannot be {value!r}")
    return value


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True, slots=True)
class ReconcilerSettings:
    ledger: Path | None = None
    delimiter: str = DEFAULT_DELIMITER
    has_header: bool = True
    state_file: str = DEFAULT_STATE_FILE
    receipt_ext: str = DEFAULT_RECEIPT_EXT

    @classmethod
    def from_env(cls) -> ReconcilerSettings:
        ledger = _env_str("RECEIPT_RECONCILER_LEDGER")
        raw_delim = os.getenv("RECEIPT_RECONCILER_DELIMITER")
        state_file = _env_str("RECEIPT_RECONCILER_STATE_FILE") or DEFAULT_STATE_FILE
        if Path(state_file).name != state_file:
            raise ValueError(f"state file must be a bare file name, got {state_file!r}")
        ext = (_env_str("RECEIPT_RECONCILER_RECEIPT_EXT") or DEFAULT_RECEIPT_EXT).lstrip(".")
        return cls(
            ledger=Path(ledger).expanduser() if ledger else None,
            # Empty means "unset"; a lone space is a legitimate delimiter.
            delimiter=normalize_delimiter(raw_delim) if raw_delim else DEFAULT_DELIMITER,
            has_header=parse_bool(os.getenv("RECEIPT_RECONCILER_HAS_HEADER"), default=True),
            state_file=state_file,
            receipt_ext=ext,
        )


__all__ = [
    "DEFAULT_DELIMITER",
    "DEFAULT_STATE_FILE",
    "DEFAULT_RECEIPT_EXT",
    "ReconcilerSettings",
    "normalize_delimiter",
    "parse_bool",
]
