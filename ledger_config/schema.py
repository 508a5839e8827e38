"""
Ledger configuration schema.

Frozen dataclasses the loader parses YAML into: runtime settings and the
chart definition (plan comptable plus journals) used to seed a new ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerSettings:
    """Settings read once at startup."""

    currency: str = "MAD"
    database_url: str = "sqlite:///ledger.db"
    # Largest |debit - credit| gap still refused; entries must be under it
    balance_tolerance: Decimal = Decimal("0.01")
    chart_path: str | None = None  # None means the bundled plan comptable
    echo_sql: bool = False


# ---------------------------------------------------------------------------
# Chart of accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountDef:
    """One account of the plan comptable."""

    code: str
    name: str
    account_class: int
    nature: str  # debit, credit
    account_type: str = "detail"  # detail, title
    parent_code: str | None = None


@dataclass(frozen=True)
class JournalDef:
    code: str
    name: str
    journal_type: str  # purchases, sales, bank, cash, general


@dataclass(frozen=True)
class ChartDefinition:
    """A complete chart: accounts and journals, with a content checksum."""

    name: str
    version: int
    currency: str
    accounts: tuple[AccountDef, ...] = field(default_factory=tuple)
    journals: tuple[JournalDef, ...] = field(default_factory=tuple)
    checksum: str = ""

    def account(self, code: str) -> AccountDef | None:
        for account in self.accounts:
            if account.code == code:
                return account
        return None
