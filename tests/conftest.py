"""Pytest configuration for test isolation.

The CLI and settings read ``RECEIPT_RECONCILER_*`` variables (possibly from a
developer's ``.env``). An autouse fixture removes them so every test starts
from the built-in defaults, and another runs each test from its own temporary
working directory so no stray ``.env`` is picked up.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

_ENV_VARS = (
    "RECEIPT_RECONCILER_LEDGER",
    "RECEIPT_RECONCILER_DELIMITER",
    "RECEIPT_RECONCILER_HAS_HEADER",
    "RECEIPT_RECONCILER_STATE_FILE",
    "RECEIPT_RECONCILER_RECEIPT_EXT",
    "RECEIPT_RECONCILER_LOG_LEVEL",
    "RECEIPT_RECONCILER_LOG_FILE",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


LEDGER_TEXT = (
    "date;category;description;amount\n"
    "2022-01-04;food;Groceries;-45.10\n"
    "2022-01-05;misc;Rent;-1200.00\n"
    "2022-01-09;misc;Power/Water;-80.00\n"
)


@pytest.fixture
def make_ledger(tmp_path: Path) -> Callable[..., Path]:
    """Write a ledger (and optional receipt files) into a fresh directory."""

    def _make(
        text: str = LEDGER_TEXT,
        *,
        receipts: tuple[str, ...] = (),
        name: str = "ledger.csv",
    ) -> Path:
        root = tmp_path / "books"
        root.mkdir(exist_ok=True)
        ledger = root / name
        ledger.write_text(text, encoding="utf-8")
        for r in receipts:
            (root / r).write_bytes(b"%PDF-1.4\n")
        return ledger

    return _make


@pytest.fixture
def opened_files() -> list[str]:
    return []


@pytest.fixture
def fake_viewer(opened_files: list[str]) -> Callable[[str], bool]:
    def _viewer(path: str) -> bool:
        opened_files.append(os.fspath(path))
        return True

    return _viewer
