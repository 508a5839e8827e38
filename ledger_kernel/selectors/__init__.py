"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.entry_selector import EntrySelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.selectors.statement_selector import (
    BalanceSheet,
    IncomeStatement,
    StatementLine,
    StatementSection,
    StatementSelector,
)

__all__ = [
    "BalanceSheet",
    "EntrySelector",
    "IncomeStatement",
    "LedgerSelector",
    "StatementLine",
    "StatementSection",
    "StatementSelector",
]
