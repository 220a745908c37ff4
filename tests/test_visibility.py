from __future__ import annotations

import pytest

from receipt_reconciler.visibility import VisibilityIndex, visible_count


def test_hidden_rows_are_skipped():
    idx = VisibilityIndex.build([False, True, False, True], show_hidden=False)
    assert list(idx) == [0, 2]
    assert idx.count == 2
    assert idx.resolve(1) == 2
    assert idx.ordinal_of(2) == 1
    assert idx.ordinal_of(1) is None


def test_show_hidden_is_identity():
    idx = VisibilityIndex.build([True, True, False], show_hidden=True)
    assert list(idx) == [0, 1, 2]
    assert len(idx) == 3
    assert idx.show_hidden is True


def test_all_hidden_gives_empty_index():
    idx = VisibilityIndex.build([True, True], show_hidden=False)
    assert idx.count == 0
    with pytest.raises(IndexError):
        idx.resolve(0)


def test_empty_ledger():
    assert VisibilityIndex.build([], show_hidden=False).count == 0
    assert visible_count([]) == 0


def test_visible_count_ignores_show_hidden():
    flags = [False, True, False]
    assert visible_count(flags) == 2
    assert VisibilityIndex.build(flags, show_hidden=True).count == 3
