"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountNature, AccountType
from ledger_kernel.models.entry import Entry, EntryLine, EntryStatus
from ledger_kernel.models.fiscal_year import FiscalYear, FiscalYearStatus
from ledger_kernel.models.journal import Journal, JournalType
from ledger_kernel.models.sequence import SequenceCounter
from ledger_kernel.models.tva_declaration import (
    DeclarationStatus,
    TvaDeclaration,
    TvaRegime,
)

__all__ = [
    "Account",
    "AccountNature",
    "AccountType",
    "Journal",
    "JournalType",
    "FiscalYear",
    "FiscalYearStatus",
    "Entry",
    "EntryLine",
    "EntryStatus",
    "TvaDeclaration",
    "TvaRegime",
    "DeclarationStatus",
    "SequenceCounter",
]
