"""
Ledger folds -- pure aggregation of validated lines.

Responsibility:
    Turns an ordered stream of validated lines into the two ledger reports:
    the per-account grand livre (running balance left-fold) and the trial
    balance (per-account totals and soldes).  Selectors feed these folds
    with rows streamed from storage; nothing here touches the database.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - running_balance[i] = running_balance[i-1] + debit[i] - credit[i],
      seeded at 0.  Same input order, same output.
    - Trial balance rows are sorted by account code; the grand totals of a
      set of balanced entries are equal.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import ZERO


@dataclass(frozen=True)
class LedgerLine:
    """One validated line as read from storage, in ledger order."""

    entry_id: UUID
    entry_date: date
    piece_number: str
    label: str
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class LedgerRow:
    entry_id: UUID
    entry_date: date
    piece_number: str
    label: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class AccountLedger:
    """Grand livre for one account."""

    account_id: UUID
    account_code: str
    account_name: str
    rows: tuple[LedgerRow, ...]
    total_debit: Decimal
    total_credit: Decimal

    @property
    def closing_balance(self) -> Decimal:
        return self.total_debit - self.total_credit


def running_balance(lines: Iterable[LedgerLine]) -> Iterable[LedgerRow]:
    """Left-fold lines into rows carrying the running balance."""
    balance = ZERO
    for line in lines:
        balance = balance + line.debit - line.credit
        yield LedgerRow(
            entry_id=line.entry_id,
            entry_date=line.entry_date,
            piece_number=line.piece_number,
            label=line.label,
            debit=line.debit,
            credit=line.credit,
            running_balance=balance,
        )


def build_account_ledger(
    account_id: UUID,
    account_code: str,
    account_name: str,
    lines: Iterable[LedgerLine],
) -> AccountLedger:
    rows = tuple(running_balance(lines))
    return AccountLedger(
        account_id=account_id,
        account_code=account_code,
        account_name=account_name,
        rows=rows,
        total_debit=sum((r.debit for r in rows), ZERO),
        total_credit=sum((r.credit for r in rows), ZERO),
    )


# ---------------------------------------------------------------------------
# Trial balance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialBalanceRow:
    """
    Per-account totals.

    diff = total_debit - total_credit
    diff > 0  -> solde_debit = diff,  solde_credit = 0
    otherwise -> solde_debit = 0,     solde_credit = -diff
    """

    account_id: UUID
    account_code: str
    account_name: str
    account_class: int
    total_debit: Decimal
    total_credit: Decimal

    @property
    def diff(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def solde_debit(self) -> Decimal:
        return self.diff if self.diff > ZERO else ZERO

    @property
    def solde_credit(self) -> Decimal:
        return -self.diff if self.diff < ZERO else ZERO


@dataclass(frozen=True)
class TrialBalance:
    rows: tuple[TrialBalanceRow, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((r.total_debit for r in self.rows), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((r.total_credit for r in self.rows), ZERO)

    @property
    def total_solde_debit(self) -> Decimal:
        return sum((r.solde_debit for r in self.rows), ZERO)

    @property
    def total_solde_credit(self) -> Decimal:
        return sum((r.solde_credit for r in self.rows), ZERO)

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def for_class(self, account_class: int) -> tuple[TrialBalanceRow, ...]:
        return tuple(r for r in self.rows if r.account_class == account_class)


@dataclass(frozen=True)
class AccountKey:
    account_id: UUID
    account_code: str
    account_name: str
    account_class: int


class TrialBalanceAccumulator:
    """
    Incremental per-account totals.

    Feed (account, debit, credit) one line at a time, then call result().
    Memory is bounded by the number of accounts, not lines.
    """

    def __init__(self) -> None:
        self._totals: dict[UUID, list] = {}

    def add(self, account: AccountKey, debit: Decimal, credit: Decimal) -> None:
        slot = self._totals.get(account.account_id)
        if slot is None:
            slot = [account, ZERO, ZERO]
            self._totals[account.account_id] = slot
        slot[1] += debit
        slot[2] += credit

    def result(self) -> TrialBalance:
        rows = [
            TrialBalanceRow(
                account_id=key.account_id,
                account_code=key.account_code,
                account_name=key.account_name,
                account_class=key.account_class,
                total_debit=debit,
                total_credit=credit,
            )
            for key, debit, credit in self._totals.values()
        ]
        rows.sort(key=lambda r: r.account_code)
        return TrialBalance(rows=tuple(rows))


def build_trial_balance(
    lines: Iterable[tuple[AccountKey, Decimal, Decimal]],
) -> TrialBalance:
    acc = TrialBalanceAccumulator()
    for account, debit, credit in lines:
        acc.add(account, debit, credit)
    return acc.result()
