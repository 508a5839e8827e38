"""
EntryLifecycleService -- DRAFT -> VALIDATED transitions, deletion, reversal.

Responsibility:
    Owns the only status transition an entry has.  Re-checks the entry at
    validation time (it may have been edited, or its fiscal year closed,
    since creation), stamps the validation audit fields, and produces
    offsetting reversal drafts for validated entries.

Invariants enforced:
    - DRAFT -> VALIDATED only; validated entries never go back.
    - At validation: >= 2 lines, balanced, header totals equal line sums,
      fiscal year still open and containing the entry date.
    - Validated entries are neither deleted nor edited (service check here,
      ORM listeners in db/immutability.py as the second line).
    - A validated entry is reversed at most once.

Failure modes:
    - EntryNotFoundError.
    - EntryAlreadyValidatedError (validate twice).
    - TotalsMismatchError, UnbalancedEntryError, InsufficientLinesError.
    - ClosedFiscalYearError, EntryDateOutOfRangeError.
    - EntryImmutableError (delete a validated entry).
    - EntryNotValidatedError, EntryAlreadyReversedError (reverse_entry).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import CENT
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntryInfo, EntryLineSpec
from ledger_kernel.exceptions import (
    EntryAlreadyReversedError,
    EntryAlreadyValidatedError,
    EntryImmutableError,
    EntryNotFoundError,
    EntryNotValidatedError,
    InsufficientLinesError,
    TotalsMismatchError,
    UnbalancedEntryError,
)
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.entry import Entry, EntryStatus
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.entry_writer import MIN_LINES, EntryWriter
from ledger_kernel.services.fiscal_year_service import FiscalYearService

logger = get_logger("services.entry_lifecycle")

REVERSAL_SOURCE_TYPE = "entry_reversal"


class EntryLifecycleService(BaseService[Entry]):
    """Validation, deletion and reversal of entries.  Flush-only."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        balance_tolerance: Decimal = CENT,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._tolerance = balance_tolerance
        self._fiscal_years = FiscalYearService(session, self._clock)
        self._writer = EntryWriter(session, self._clock, balance_tolerance)

    def validate_entry(self, entry_id: UUID, *, actor_id: UUID) -> EntryInfo:
        """
        Move a DRAFT entry to VALIDATED.

        The row is locked FOR UPDATE so two concurrent validations serialize;
        the loser sees VALIDATED and gets EntryAlreadyValidatedError.
        """
        entry = self._lock(entry_id)

        with LogContext.bind(actor_id=actor_id, entry_id=entry.id):
            if entry.is_validated:
                logger.warning(
                    "entry_validation_rejected",
                    extra={
                        "invariant": LedgerInvariant.IMMUTABILITY.value,
                        "entry_number": entry.entry_number,
                        "reason": "already validated",
                    },
                )
                raise EntryAlreadyValidatedError(str(entry.id))

            self._recheck(entry)
            self._fiscal_years.validate_entry_date(entry.fiscal_year, entry.entry_date)

            entry.status = EntryStatus.VALIDATED.value
            entry.validated_at = self._clock.now()
            entry.validated_by_id = actor_id
            entry.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "entry_validated",
                extra={
                    "entry_number": entry.entry_number,
                    "seq": entry.seq,
                    "total_debit": str(entry.total_debit),
                },
            )
        return EntryInfo.from_model(entry)

    def delete_entry(self, entry_id: UUID, *, actor_id: UUID) -> None:
        """Delete a DRAFT entry and its lines."""
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            entry = self._lock(entry_id)
            if entry.is_validated:
                logger.warning(
                    "entry_delete_rejected",
                    extra={
                        "invariant": LedgerInvariant.IMMUTABILITY.value,
                        "entry_number": entry.entry_number,
                    },
                )
                raise EntryImmutableError(str(entry.id), "delete")

            entry_number = entry.entry_number
            self.session.delete(entry)
            self.session.flush()
            logger.info(
                "entry_deleted",
                extra={"entry_number": entry_number},
            )

    def reverse_entry(
        self,
        entry_id: UUID,
        entry_number: str,
        entry_date: date,
        *,
        actor_id: UUID,
        description: str | None = None,
    ) -> EntryInfo:
        """
        Create the offsetting DRAFT of a validated entry.

        Every line is copied with debit and credit swapped into the journal of
        the original.  The fiscal year is resolved from ``entry_date``, so a
        reversal of a closed year's entry lands in the current open year.
        The draft points back via source_type="entry_reversal" and
        source_id=<original id>; it still has to be validated.
        """
        with LogContext.bind(actor_id=actor_id):
            original = self._get_or_raise(entry_id)
            if not original.is_validated:
                raise EntryNotValidatedError(str(original.id))

            existing = self.session.execute(
                select(Entry.id).where(
                    Entry.source_type == REVERSAL_SOURCE_TYPE,
                    Entry.source_id == str(original.id),
                )
            ).scalar_one_or_none()
            if existing is not None:
                raise EntryAlreadyReversedError(str(original.id), str(existing))

            lines = [
                EntryLineSpec(
                    account_id=line.account_id,
                    debit=line.credit,
                    credit=line.debit,
                    label=line.label,
                    tva_rate=line.tva_rate,
                    tva_amount=line.tva_amount,
                )
                for line in original.lines
            ]
            reversal = self._writer.create_entry(
                entry_number,
                entry_date,
                original.journal_id,
                lines,
                description or f"Extourne {original.entry_number}",
                reference=original.entry_number,
                source_type=REVERSAL_SOURCE_TYPE,
                source_id=str(original.id),
                actor_id=actor_id,
            )
            logger.info(
                "entry_reversed",
                extra={
                    "entry_id": str(original.id),
                    "entry_number": original.entry_number,
                    "reversal_entry_id": str(reversal.id),
                    "reversal_entry_number": reversal.entry_number,
                },
            )
            return reversal

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_raise(self, entry_id: UUID) -> Entry:
        entry = self.session.get(Entry, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _lock(self, entry_id: UUID) -> Entry:
        entry = self.session.execute(
            select(Entry)
            .where(Entry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _recheck(self, entry: Entry) -> None:
        line_debit = entry.line_debits
        line_credit = entry.line_credits

        if len(entry.lines) < MIN_LINES:
            raise self._rejected(
                LedgerInvariant.MIN_LINES, entry, InsufficientLinesError(len(entry.lines))
            )
        if entry.total_debit != line_debit or entry.total_credit != line_credit:
            raise self._rejected(
                LedgerInvariant.HEADER_TOTALS,
                entry,
                TotalsMismatchError(
                    str(entry.id),
                    entry.total_debit,
                    entry.total_credit,
                    line_debit,
                    line_credit,
                ),
            )
        if abs(line_debit - line_credit) >= self._tolerance:
            raise self._rejected(
                LedgerInvariant.DOUBLE_ENTRY_BALANCE,
                entry,
                UnbalancedEntryError(line_debit, line_credit),
            )

    def _rejected(self, invariant: LedgerInvariant, entry: Entry, exc):
        logger.warning(
            "entry_validation_rejected",
            extra={
                "invariant": invariant.value,
                "entry_number": entry.entry_number,
                "error_code": exc.code,
            },
        )
        return exc
