"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.entry_lifecycle import EntryLifecycleService
from ledger_kernel.services.entry_writer import EntryWriter
from ledger_kernel.services.fiscal_year_service import FiscalYearService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.tva_service import TvaService

__all__ = [
    "AccountService",
    "EntryLifecycleService",
    "EntryWriter",
    "FiscalYearService",
    "JournalService",
    "SequenceService",
    "TvaService",
]
