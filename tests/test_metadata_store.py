from __future__ import annotations

import pytest

from receipt_reconciler.metadata import RowMetadataStore
from receipt_reconciler.models import LedgerRow, RowMetadata


def test_defaults_has_one_entry_per_row():
    store = RowMetadataStore.defaults(3)
    assert len(store) == 3
    assert store.hidden_flags() == [False, False, False]
    assert store.assigned_receipts() == set()


def test_shorter_persisted_list_resets_everything():
    # Row 0 was hidden and row 1 had a receipt before the ledger grew to 3 rows.
    persisted = [RowMetadata(hidden=True), RowMetadata(receipt="/b/r.pdf")]
    store = RowMetadataStore.load(persisted, 3)
    assert [m.model_dump() for m in store] == [RowMetadata().model_dump()] * 3


def test_equal_length_is_adopted_as_copies():
    persisted = [RowMetadata(hidden=True), RowMetadata(receipt="/b/r.pdf")]
    store = RowMetadataStore.load(persisted, 2)
    assert store.hidden_flags() == [True, False]
    assert store[1].receipt == "/b/r.pdf"
    store.set_hidden(0, False)
    assert persisted[0].hidden is True


def test_longer_persisted_list_is_truncated():
    persisted = [RowMetadata(hidden=True), RowMetadata(), RowMetadata(receipt="/b/x.pdf")]
    store = RowMetadataStore.load(persisted, 2)
    assert len(store) == 2
    assert store.hidden_flags() == [True, False]
    assert store.assigned_receipts() == set()


def test_index_out_of_range_raises():
    store = RowMetadataStore.defaults(1)
    with pytest.raises(IndexError):
        store[1]
    with pytest.raises(IndexError):
        store.toggle_hidden(-1)


def test_toggle_assign_and_clear():
    store = RowMetadataStore.defaults(2)
    assert store.toggle_hidden(0) is True
    assert store.toggle_hidden(0) is False

    store.assign_receipt(1, "/books/scan.pdf")
    assert store.holder_of("/books/scan.pdf") == 1
    assert store.receipt_filename(1) == "scan.pdf"
    assert store.receipt_filename(0) is None

    assert store.clear_receipt(1) == "/books/scan.pdf"
    assert store.clear_receipt(1) is None
    assert store.holder_of("/books/scan.pdf") is None


def test_clear_all_counts_cleared_receipts():
    store = RowMetadataStore.defaults(3)
    store.assign_receipt(0, "/b/a.pdf")
    store.assign_receipt(2, "/b/c.pdf")
    store.set_hidden(1, True)
    assert store.clear_all() == 2
    assert store.assigned_receipts() == set()
    assert store.hidden_flags() == [False, True, False]


def test_is_name_correct_reflects_canonical_path():
    row = LedgerRow(cells=("2022-01-05", "misc", "Rent", "-1200.00"))
    store = RowMetadataStore.defaults(2)
    assert store.is_name_correct(1, row) is True
    store.assign_receipt(1, "/books/scan.pdf")
    assert store.is_name_correct(1, row) is False
    store.clear_receipt(1)
    store.assign_receipt(1, "/books/001-2022-01-05-1200.00EUR-Rent.pdf")
    assert store.is_name_correct(1, row) is True


def test_duplicate_receipts_are_cleared_on_load():
    persisted = [
        RowMetadata(receipt="/b/a.pdf"),
        RowMetadata(hidden=True, receipt="/b/a.pdf"),
        RowMetadata(receipt="/b/c.pdf"),
    ]
    store = RowMetadataStore.load(persisted, 3)
    assert [m.receipt for m in store] == ["/b/a.pdf", None, "/b/c.pdf"]
    assert store.hidden_flags() == [False, True, False]
    assert persisted[1].receipt == "/b/a.pdf"
