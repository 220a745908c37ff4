from __future__ import annotations

import logging

import pytest

from receipt_reconciler.logging_setup import get_logger, resolve_level


def test_explicit_level_wins(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RECEIPT_RECONCILER_LOG_LEVEL", "ERROR")
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(15) == 15


def test_env_level_then_default(monkeypatch: pytest.MonkeyPatch):
    assert resolve_level() == logging.WARNING
    monkeypatch.setenv("RECEIPT_RECONCILER_LOG_LEVEL", "info")
    assert resolve_level() == logging.INFO
    assert resolve_level("loud") == logging.INFO


def test_numeric_strings_are_accepted():
    assert resolve_level("25") == 25


def test_module_loggers_live_under_package_logger():
    log = get_logger("receipt_reconciler.session")
    assert log.name == "receipt_reconciler.session"
    assert logging.getLogger("receipt_reconciler").handlers
