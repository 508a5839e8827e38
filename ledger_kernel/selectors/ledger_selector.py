"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger reports -- the grand livre of one account and
    the trial balance (balance generale).  Both are derived at query time from
    validated entry lines; no balance is ever stored.
Architecture position: Kernel > Selectors.  Streams rows from storage and
    feeds them to the pure folds in domain/ledger_fold.py.

Invariants enforced:
    - Only lines of VALIDATED entries are read.
    - Ledger order is (Entry.seq, EntryLine.line_seq): creation order, stable
      across replays and independent of entry_date.
    - Rows are streamed with yield_per; memory is bounded by the batch size
      (grand livre output aside) and by the number of accounts.

Failure modes:
    - AccountNotFoundError for an unknown account in account_ledger().
    - Empty results (zero totals) when nothing is validated.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.ledger_fold import (
    AccountKey,
    AccountLedger,
    LedgerLine,
    TrialBalance,
    TrialBalanceAccumulator,
    build_account_ledger,
)
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.entry import Entry, EntryLine, EntryStatus
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")

DEFAULT_BATCH_SIZE = 500


class LedgerSelector(BaseSelector[EntryLine]):
    """
    Ledger reports over validated lines.

    Guarantees:
        - Calling the same report twice on the same data gives the same rows.
        - All amounts are Decimal.
    """

    def __init__(self, session, batch_size: int = DEFAULT_BATCH_SIZE):
        super().__init__(session)
        self._batch_size = batch_size

    def account_ledger(
        self,
        account_id: UUID,
        fiscal_year_id: UUID | None = None,
    ) -> AccountLedger:
        """
        Grand livre of one account with its running balance.

        Rows carry entry_date, the piece number (entry_number) and the line
        label, falling back to the entry description when the label is empty.
        """
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        stmt = (
            select(
                Entry.id,
                Entry.entry_date,
                Entry.entry_number,
                Entry.description,
                EntryLine.label,
                EntryLine.debit,
                EntryLine.credit,
            )
            .select_from(EntryLine)
            .join(Entry, EntryLine.entry_id == Entry.id)
            .where(
                EntryLine.account_id == account_id,
                Entry.status == EntryStatus.VALIDATED.value,
            )
            .order_by(Entry.seq, EntryLine.line_seq)
            .execution_options(yield_per=self._batch_size)
        )
        if fiscal_year_id is not None:
            stmt = stmt.where(Entry.fiscal_year_id == fiscal_year_id)

        lines = (
            LedgerLine(
                entry_id=entry_id,
                entry_date=entry_date,
                piece_number=entry_number,
                label=label or description or "",
                debit=debit,
                credit=credit,
            )
            for entry_id, entry_date, entry_number, description, label, debit, credit
            in self.session.execute(stmt)
        )
        ledger = build_account_ledger(account.id, account.code, account.name, lines)

        logger.debug(
            "account_ledger_built",
            extra={
                "invariant": LedgerInvariant.LEDGER_ORDER.value,
                "account_code": account.code,
                "row_count": len(ledger.rows),
                "closing_balance": str(ledger.closing_balance),
            },
        )
        return ledger

    def trial_balance(self, fiscal_year_id: UUID | None = None) -> TrialBalance:
        """
        One row per account with at least one validated line, sorted by code.

        Lines are folded one by one in Python: money columns are stored as
        text on SQLite, so SQL SUM() is not portable.
        """
        stmt = (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.account_class,
                EntryLine.debit,
                EntryLine.credit,
            )
            .select_from(EntryLine)
            .join(Entry, EntryLine.entry_id == Entry.id)
            .join(Account, EntryLine.account_id == Account.id)
            .where(Entry.status == EntryStatus.VALIDATED.value)
            .order_by(Entry.seq, EntryLine.line_seq)
            .execution_options(yield_per=self._batch_size)
        )
        if fiscal_year_id is not None:
            stmt = stmt.where(Entry.fiscal_year_id == fiscal_year_id)

        keys: dict[UUID, AccountKey] = {}
        accumulator = TrialBalanceAccumulator()
        for account_id, code, name, account_class, debit, credit in self.session.execute(stmt):
            key = keys.get(account_id)
            if key is None:
                key = keys[account_id] = AccountKey(account_id, code, name, account_class)
            accumulator.add(key, debit, credit)

        result = accumulator.result()
        logger.debug(
            "trial_balance_built",
            extra={
                "account_count": len(result.rows),
                "total_debit": str(result.total_debit),
                "total_credit": str(result.total_credit),
                "is_balanced": result.is_balanced,
            },
        )
        return result
