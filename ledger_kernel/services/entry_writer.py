"""
EntryWriter -- validates and persists journal entries as drafts.

Responsibility:
    Turns caller-supplied EntryLineSpec sequences into persisted Entry and
    EntryLine rows.  Runs the ordered validation pipeline, computes header
    totals server-side, derives missing line VAT amounts, allocates the
    entry seq and writes header plus lines atomically.

Architecture position:
    Kernel > Services.  Delegates fiscal-year checks to FiscalYearService and
    seq allocation to SequenceService.  Called directly by callers and by
    EntryLifecycleService.reverse_entry.

Invariants enforced:
    - At least two lines per entry.
    - Lines only target active DETAIL accounts.
    - |sum(debit) - sum(credit)| < balance_tolerance (0.01 by default).
    - The journal is active; the fiscal year is open and contains the date.
    - entry_number is unique (pre-check plus uq_entry_number).
    - Header totals always equal the line sums.
    - Only DRAFT entries are edited.

Failure modes (in evaluation order, first failure wins):
    - InvalidAmountError / InvalidTvaRateError at EntryLineSpec construction.
    - InsufficientLinesError.
    - AccountNotFoundError, InvalidAccountError (title or inactive account).
    - UnbalancedEntryError.
    - JournalNotFoundError, InactiveJournalError, FiscalYearNotFoundError,
      ClosedFiscalYearError, EntryDateOutOfRangeError.
    - DuplicateEntryNumberError.
    - EntryNotFoundError, EntryImmutableError (update_entry).

Audit relevance:
    Every rejection is logged as ``entry_rejected`` at WARNING with the
    failing invariant before it is raised.

Non-goals:
    - Does NOT validate entries (EntryLifecycleService).
    - Does NOT manage the transaction boundary (caller's responsibility).
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.db.types import CENT, ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntryInfo, EntryLineSpec
from ledger_kernel.domain.tva import line_tva_amount
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateEntryNumberError,
    EntryImmutableError,
    EntryNotFoundError,
    InactiveJournalError,
    InsufficientLinesError,
    InvalidAccountError,
    JournalNotFoundError,
    LedgerError,
    UnbalancedEntryError,
)
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.entry import Entry, EntryLine, EntryStatus
from ledger_kernel.models.journal import Journal
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.fiscal_year_service import FiscalYearService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.entry_writer")

MIN_LINES = 2


class EntryWriter(BaseService[Entry]):
    """
    Creates and edits draft entries.

    Usage:
        writer = EntryWriter(session)
        info = writer.create_entry(
            "VTE-2024-0001", date(2024, 3, 1), journal_id,
            [EntryLineSpec.debit_line(client_id, "1200.00"),
             EntryLineSpec.credit_line(sales_id, "1000.00"),
             EntryLineSpec.credit_line(tva_id, "200.00")],
            "Facture F-001",
            actor_id=user_id,
        )
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        balance_tolerance: Decimal = CENT,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._tolerance = balance_tolerance
        self._sequence = SequenceService(session)
        self._fiscal_years = FiscalYearService(session, self._clock)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_entry(
        self,
        entry_number: str,
        entry_date: date,
        journal_id: UUID,
        lines: Sequence[EntryLineSpec],
        description: str | None = None,
        fiscal_year_id: UUID | None = None,
        reference: str | None = None,
        source_type: str | None = None,
        source_id: str | None = None,
        *,
        actor_id: UUID,
    ) -> EntryInfo:
        """
        Validate and persist a new DRAFT entry.

        Raises the first failing check, in the order listed in the module
        docstring.  Nothing is written when a check fails.
        """
        with LogContext.bind(actor_id=actor_id):
            lines = list(lines)
            accounts = self._check_lines(entry_number, lines)
            total_debit, total_credit = self._check_balance(entry_number, lines)

            journal = self._get_journal(journal_id)
            fiscal_year = self._fiscal_years.resolve_for_entry(fiscal_year_id, entry_date)

            if self._number_taken(entry_number):
                raise self._reject(
                    LedgerInvariant.SEQUENCE_MONOTONICITY,
                    DuplicateEntryNumberError(entry_number),
                    entry_number,
                )

            savepoint = self.session.begin_nested()
            try:
                # seq is allocated inside the savepoint so a failed insert gives it back
                entry = Entry(
                    entry_number=entry_number,
                    entry_date=entry_date,
                    journal_id=journal.id,
                    journal=journal,
                    fiscal_year_id=fiscal_year.id,
                    fiscal_year=fiscal_year,
                    description=description,
                    reference=reference,
                    source_type=source_type,
                    source_id=source_id,
                    status=EntryStatus.DRAFT.value,
                    total_debit=total_debit,
                    total_credit=total_credit,
                    seq=self._sequence.next_value(SequenceService.ENTRY),
                    created_by_id=actor_id,
                )
                entry.lines = self._build_lines(lines, accounts, actor_id)
                self.session.add(entry)
                self.session.flush()
            except IntegrityError:
                savepoint.rollback()
                raise self._reject(
                    LedgerInvariant.SEQUENCE_MONOTONICITY,
                    DuplicateEntryNumberError(entry_number),
                    entry_number,
                )
            savepoint.commit()

            with LogContext.bind(entry_id=entry.id):
                logger.info(
                    "entry_created",
                    extra={
                        "entry_number": entry_number,
                        "journal_code": journal.code,
                        "fiscal_year": fiscal_year.name,
                        "seq": entry.seq,
                        "line_count": len(lines),
                        "total_debit": str(total_debit),
                        "total_credit": str(total_credit),
                    },
                )
            return EntryInfo.from_model(entry)

    def update_entry(
        self,
        entry_id: UUID,
        *,
        lines: Sequence[EntryLineSpec] | None = None,
        description: str | None = None,
        reference: str | None = None,
        entry_date: date | None = None,
        actor_id: UUID,
    ) -> EntryInfo:
        """
        Edit a DRAFT entry.

        When ``lines`` is given the previous lines are replaced as a whole.
        The full validation pipeline runs again against the resulting entry
        and header totals are recomputed.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            entry = self.session.execute(
                select(Entry)
                .where(Entry.id == entry_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if entry is None:
                raise EntryNotFoundError(str(entry_id))
            if entry.is_validated:
                raise self._reject(
                    LedgerInvariant.IMMUTABILITY,
                    EntryImmutableError(str(entry.id), "update"),
                    entry.entry_number,
                )

            if lines is None:
                specs = [
                    EntryLineSpec(
                        account_id=line.account_id,
                        debit=line.debit,
                        credit=line.credit,
                        label=line.label,
                        tva_rate=line.tva_rate,
                        tva_amount=line.tva_amount,
                    )
                    for line in entry.lines
                ]
            else:
                specs = list(lines)

            accounts = self._check_lines(entry.entry_number, specs)
            total_debit, total_credit = self._check_balance(entry.entry_number, specs)

            journal = self._get_journal(entry.journal_id)
            new_date = entry_date or entry.entry_date
            self._fiscal_years.validate_entry_date(entry.fiscal_year, new_date)

            with self.session.begin_nested():
                if lines is not None:
                    # Old rows go first: (entry_id, line_seq) is unique
                    entry.lines.clear()
                    self.session.flush()
                    entry.lines.extend(self._build_lines(specs, accounts, actor_id))
                entry.entry_date = new_date
                if description is not None:
                    entry.description = description
                if reference is not None:
                    entry.reference = reference
                entry.total_debit = total_debit
                entry.total_credit = total_credit
                entry.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "entry_updated",
                extra={
                    "entry_number": entry.entry_number,
                    "journal_code": journal.code,
                    "lines_replaced": lines is not None,
                    "total_debit": str(total_debit),
                },
            )
            return EntryInfo.from_model(entry)

    # ------------------------------------------------------------------
    # Validation pipeline
    # ------------------------------------------------------------------

    def _check_lines(
        self,
        entry_number: str,
        lines: list[EntryLineSpec],
    ) -> dict[UUID, Account]:
        if len(lines) < MIN_LINES:
            raise self._reject(
                LedgerInvariant.MIN_LINES,
                InsufficientLinesError(len(lines)),
                entry_number,
            )

        ids = {line.account_id for line in lines}
        accounts = {
            account.id: account
            for account in self.session.scalars(
                select(Account).where(Account.id.in_(ids))
            )
        }
        for line in lines:
            account = accounts.get(line.account_id)
            if account is None:
                raise self._reject(
                    LedgerInvariant.DETAIL_ACCOUNTS_ONLY,
                    AccountNotFoundError(str(line.account_id)),
                    entry_number,
                )
            if not account.can_receive_lines:
                reason = (
                    "account is inactive"
                    if account.is_detail
                    else "title accounts cannot receive lines"
                )
                raise self._reject(
                    LedgerInvariant.DETAIL_ACCOUNTS_ONLY,
                    InvalidAccountError(account.code, reason),
                    entry_number,
                )
        return accounts

    def _check_balance(
        self,
        entry_number: str,
        lines: list[EntryLineSpec],
    ) -> tuple[Decimal, Decimal]:
        total_debit = sum((line.debit for line in lines), ZERO)
        total_credit = sum((line.credit for line in lines), ZERO)
        if abs(total_debit - total_credit) >= self._tolerance:
            raise self._reject(
                LedgerInvariant.DOUBLE_ENTRY_BALANCE,
                UnbalancedEntryError(total_debit, total_credit),
                entry_number,
            )
        return total_debit, total_credit

    def _get_journal(self, journal_id: UUID) -> Journal:
        journal = self.session.get(Journal, journal_id)
        if journal is None:
            raise JournalNotFoundError(str(journal_id))
        if not journal.is_active:
            raise InactiveJournalError(journal.code)
        return journal

    def _number_taken(self, entry_number: str) -> bool:
        return self.session.execute(
            select(Entry.id).where(Entry.entry_number == entry_number)
        ).first() is not None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _build_lines(
        self,
        lines: list[EntryLineSpec],
        accounts: dict[UUID, Account],
        actor_id: UUID,
    ) -> list[EntryLine]:
        rows = []
        for position, spec in enumerate(lines):
            tva_amount = spec.tva_amount
            if tva_amount is None:
                tva_amount = line_tva_amount(spec.base, spec.tva_rate)
            rows.append(
                EntryLine(
                    account_id=spec.account_id,
                    account=accounts[spec.account_id],
                    label=spec.label,
                    debit=spec.debit,
                    credit=spec.credit,
                    tva_rate=spec.tva_rate,
                    tva_amount=tva_amount,
                    line_seq=position,
                    created_by_id=actor_id,
                )
            )
        return rows

    def _reject(
        self,
        invariant: LedgerInvariant,
        exc: LedgerError,
        entry_number: str | None,
    ) -> LedgerError:
        logger.warning(
            "entry_rejected",
            extra={
                "invariant": invariant.value,
                "entry_number": entry_number,
                "error_code": exc.code,
                "reason": str(exc),
            },
        )
        return exc
