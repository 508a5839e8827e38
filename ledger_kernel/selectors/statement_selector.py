"""
Module: ledger_kernel.selectors.statement_selector
Responsibility: Financial statements derived from the trial balance: the
    compte de produits et charges (CPC) and the bilan.

Sign conventions (diff = total_debit - total_credit per account):
    CPC     charges  = sum(diff) over class 6
            produits = sum(-diff) over class 7
            result   = produits - charges
    Bilan   actif    = classes 2, 3, 5, amount = diff
            passif   = classes 1, 4, amount = -diff, plus the result
Net amounts keep the bilan balanced: for balanced books
total_actif == total_passif.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.chart import (
    ASSET_CLASSES,
    EXPENSE_CLASS,
    LIABILITY_CLASSES,
    REVENUE_CLASS,
    class_label,
)
from ledger_kernel.domain.ledger_fold import TrialBalance
from ledger_kernel.models.entry import EntryLine
from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.ledger_selector import DEFAULT_BATCH_SIZE, LedgerSelector


@dataclass(frozen=True)
class StatementLine:
    account_code: str
    account_name: str
    amount: Decimal


@dataclass(frozen=True)
class StatementSection:
    account_class: int
    label: str
    lines: tuple[StatementLine, ...]

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)


@dataclass(frozen=True)
class IncomeStatement:
    charges: StatementSection
    produits: StatementSection

    @property
    def total_charges(self) -> Decimal:
        return self.charges.total

    @property
    def total_produits(self) -> Decimal:
        return self.produits.total

    @property
    def result(self) -> Decimal:
        """Positive is a profit (benefice), negative a loss (perte)."""
        return self.total_produits - self.total_charges


@dataclass(frozen=True)
class BalanceSheet:
    actif: tuple[StatementSection, ...]
    passif: tuple[StatementSection, ...]
    result: Decimal

    @property
    def total_actif(self) -> Decimal:
        return sum((s.total for s in self.actif), ZERO)

    @property
    def total_passif(self) -> Decimal:
        return sum((s.total for s in self.passif), ZERO) + self.result

    @property
    def is_balanced(self) -> bool:
        return self.total_actif == self.total_passif


def _section(trial_balance: TrialBalance, account_class: int, sign: int) -> StatementSection:
    return StatementSection(
        account_class=account_class,
        label=class_label(account_class),
        lines=tuple(
            StatementLine(row.account_code, row.account_name, row.diff * sign)
            for row in trial_balance.for_class(account_class)
        ),
    )


def income_statement_from(trial_balance: TrialBalance) -> IncomeStatement:
    return IncomeStatement(
        charges=_section(trial_balance, EXPENSE_CLASS, 1),
        produits=_section(trial_balance, REVENUE_CLASS, -1),
    )


def balance_sheet_from(trial_balance: TrialBalance) -> BalanceSheet:
    return BalanceSheet(
        actif=tuple(_section(trial_balance, c, 1) for c in ASSET_CLASSES),
        passif=tuple(_section(trial_balance, c, -1) for c in LIABILITY_CLASSES),
        result=income_statement_from(trial_balance).result,
    )


class StatementSelector(BaseSelector[EntryLine]):

    def __init__(self, session, batch_size: int = DEFAULT_BATCH_SIZE):
        super().__init__(session)
        self._ledger = LedgerSelector(session, batch_size=batch_size)

    def income_statement(self, fiscal_year_id: UUID | None = None) -> IncomeStatement:
        return income_statement_from(self._ledger.trial_balance(fiscal_year_id))

    def balance_sheet(self, fiscal_year_id: UUID | None = None) -> BalanceSheet:
        return balance_sheet_from(self._ledger.trial_balance(fiscal_year_id))
