"""
Ledger Invariants Contract.

These invariants are structural law for the ledger core. No configuration
file may switch them off.

This module exists solely to name them. Enforcement is distributed across
EntryWriter, EntryLifecycleService, the ORM immutability listeners,
FiscalYearService and SequenceService. Services log the invariant they
checked (``invariant_checked``) or that rejected an operation.
"""

from enum import Enum, unique


@unique
class LedgerInvariant(str, Enum):
    """Non-configurable invariants enforced by the ledger kernel."""

    MIN_LINES = "min_lines"
    """Every entry carries at least two lines."""

    DETAIL_ACCOUNTS_ONLY = "detail_accounts_only"
    """Lines may only reference active detail accounts, never title accounts."""

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """|total debit - total credit| < 0.01 for every entry. Checked at
    creation, at every draft edit, and again at validation."""

    FISCAL_YEAR_BOUNDS = "fiscal_year_bounds"
    """Entry date lies within its open fiscal year's [start, end]."""

    HEADER_TOTALS = "header_totals"
    """Header totals are derived from the lines, never supplied by callers."""

    IMMUTABILITY = "immutability"
    """Validated entries and their lines, and submitted VAT declarations,
    are never updated or deleted."""

    SEQUENCE_MONOTONICITY = "sequence_monotonicity"
    """Entry creation sequence is strictly monotonic (locked counter row)."""

    LEDGER_ORDER = "ledger_order"
    """Grand livre rows follow (entry.seq, line.line_seq); running balances
    are replayable."""
