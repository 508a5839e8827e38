"""Tests for EntrySelector -- the journal screen queries."""

from datetime import date
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import EntryNotFoundError


class TestListEntries:

    def test_newest_date_first(self, fleet_books, entry_selector):
        numbers = [e.entry_number for e in entry_selector.list_entries()]
        assert numbers == ["BQ-1", "OD-2", "ACH-1", "VTE-1", "OD-1"]

    def test_same_date_latest_seq_first(self, post_entry, entry_selector):
        for number in ("OD-A", "OD-B", "OD-C"):
            post_entry(number, date(2024, 5, 1), "OD", [("5141", "1", "0"), ("1111", "0", "1")])
        numbers = [e.entry_number for e in entry_selector.list_entries()]
        assert numbers == ["OD-C", "OD-B", "OD-A"]

    def test_filter_by_journal(self, fleet_books, entry_selector, journals):
        listed = entry_selector.list_entries(journal_id=journals["OD"].id)
        assert [e.entry_number for e in listed] == ["OD-2", "OD-1"]
        assert {e.journal_code for e in listed} == {"OD"}

    def test_filter_by_status(self, fleet_books, entry_selector):
        drafts = entry_selector.list_entries(status="draft")
        assert [e.entry_number for e in drafts] == ["OD-2"]
        assert len(entry_selector.list_entries(status="validated")) == 4

    def test_filter_by_fiscal_year(self, fleet_books, entry_selector, fiscal_year):
        assert len(entry_selector.list_entries(fiscal_year_id=fiscal_year.id)) == 5
        assert entry_selector.list_entries(fiscal_year_id=uuid4()) == []

    def test_lines_included(self, fleet_books, entry_selector):
        sale = next(e for e in entry_selector.list_entries() if e.entry_number == "VTE-1")
        assert [line.account_code for line in sale.lines] == ["3421", "7124", "4455"]


class TestGetEntry:

    def test_get(self, fleet_books, entry_selector):
        entry = entry_selector.get_entry(fleet_books[1].id)
        assert entry.entry_number == "VTE-1"
        assert entry.description == "Facture F-001"

    def test_unknown(self, entry_selector):
        with pytest.raises(EntryNotFoundError):
            entry_selector.get_entry(uuid4())


class TestCountByStatus:

    def test_counts(self, fleet_books, entry_selector):
        assert entry_selector.count_by_status() == {"draft": 1, "validated": 4}

    def test_empty(self, ledger_setup, entry_selector, fiscal_year):
        assert entry_selector.count_by_status(fiscal_year.id) == {}
