"""
Module: ledger_kernel.selectors.entry_selector
Responsibility: Read-only entry queries (the journal screen): filtered entry
    lists and single entries with their lines.
"""

from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.domain.dtos import EntryInfo
from ledger_kernel.exceptions import EntryNotFoundError
from ledger_kernel.models.entry import Entry
from ledger_kernel.selectors.base import BaseSelector


class EntrySelector(BaseSelector[Entry]):

    def list_entries(
        self,
        journal_id: UUID | None = None,
        fiscal_year_id: UUID | None = None,
        status: str | None = None,
    ) -> list[EntryInfo]:
        """Entries newest first: entry_date desc, then seq desc."""
        stmt = select(Entry).order_by(Entry.entry_date.desc(), Entry.seq.desc())
        if journal_id is not None:
            stmt = stmt.where(Entry.journal_id == journal_id)
        if fiscal_year_id is not None:
            stmt = stmt.where(Entry.fiscal_year_id == fiscal_year_id)
        if status is not None:
            stmt = stmt.where(Entry.status == getattr(status, "value", status))
        return [EntryInfo.from_model(e) for e in self.session.scalars(stmt).unique()]

    def get_entry(self, entry_id: UUID) -> EntryInfo:
        entry = self.session.get(Entry, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return EntryInfo.from_model(entry)

    def count_by_status(self, fiscal_year_id: UUID | None = None) -> dict[str, int]:
        """{"draft": n, "validated": m} -- statuses with no entry are omitted."""
        stmt = select(Entry.status, func.count(Entry.id)).group_by(Entry.status)
        if fiscal_year_id is not None:
            stmt = stmt.where(Entry.fiscal_year_id == fiscal_year_id)
        return {status: count for status, count in self.session.execute(stmt)}
