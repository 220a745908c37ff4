from __future__ import annotations

from pathlib import Path

import pytest

from receipt_reconciler.config import ReconcilerSettings, normalize_delimiter, parse_bool


def test_defaults_without_environment():
    settings = ReconcilerSettings.from_env()
    assert settings == ReconcilerSettings()
    assert settings.delimiter == ";"
    assert settings.has_header is True
    assert settings.state_file == "state.json"
    assert settings.receipt_ext == "pdf"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RECEIPT_RECONCILER_LEDGER", "/books/ledger.csv")
    monkeypatch.setenv("RECEIPT_RECONCILER_DELIMITER", "tab")
    monkeypatch.setenv("RECEIPT_RECONCILER_HAS_HEADER", "no")
    monkeypatch.setenv("RECEIPT_RECONCILER_STATE_FILE", "reconcile.json")
    monkeypatch.setenv("RECEIPT_RECONCILER_RECEIPT_EXT", ".PDF")

    settings = ReconcilerSettings.from_env()

    assert settings.ledger == Path("/books/ledger.csv")
    assert settings.delimiter == "\t"
    assert settings.has_header is False
    assert settings.state_file == "reconcile.json"
    assert settings.receipt_ext == "PDF"


def test_state_file_must_be_a_bare_name(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RECEIPT_RECONCILER_STATE_FILE", "../state.json")
    with pytest.raises(ValueError):
        ReconcilerSettings.from_env()


@pytest.mark.parametrize("value", [";;", "", '"', "\n", "é"])
def test_normalize_delimiter_rejects(value):
    with pytest.raises(ValueError):
        normalize_delimiter(value)


def test_normalize_delimiter_accepts_single_bytes():
    assert normalize_delimiter(",") == ","
    assert normalize_delimiter("\\t") == "\t"
    assert normalize_delimiter(" ") == " "


def test_parse_bool_falls_back_to_default():
    assert parse_bool(None, default=True) is True
    assert parse_bool("On", default=False) is True
    assert parse_bool("0", default=True) is False
    assert parse_bool("perhaps", default=False) is False
