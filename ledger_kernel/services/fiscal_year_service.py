"""
FiscalYearService -- fiscal year lifecycle and entry-date validation.

Responsibility:
    Creates and closes fiscal years (exercices) and decides which year an
    entry belongs to.  Validates that an entry date lies inside an open
    year before the entry reaches storage.

Invariants enforced:
    - start_date < end_date; years never overlap.
    - OPEN -> CLOSED is one-way.  Closed years are a hard block: no entry is
      created, edited or validated against them.
    - Entry dates fall within [start_date, end_date] of their year.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - InvalidFiscalYearError: bad date range or duplicate name.
    - FiscalYearOverlapError: new range overlaps an existing year.
    - FiscalYearNotFoundError: unknown id, or no open year to default to.
    - FiscalYearAlreadyClosedError: close() on a closed year.
    - ClosedFiscalYearError / EntryDateOutOfRangeError: entry-date checks.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import FiscalYearInfo
from ledger_kernel.exceptions import (
    ClosedFiscalYearError,
    EntryDateOutOfRangeError,
    FiscalYearAlreadyClosedError,
    FiscalYearNotFoundError,
    FiscalYearOverlapError,
    InvalidFiscalYearError,
)
from ledger_kernel.invariants import LedgerInvariant
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.fiscal_year import FiscalYear, FiscalYearStatus
from ledger_kernel.services.base import BaseService

logger = get_logger("services.fiscal_year")


class FiscalYearService(BaseService[FiscalYear]):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def create_fiscal_year(
        self,
        name: str,
        start_date: date,
        end_date: date,
        *,
        actor_id: UUID,
    ) -> FiscalYearInfo:
        """
        Create an open fiscal year.

        Raises:
            InvalidFiscalYearError: start_date >= end_date or name reused.
            FiscalYearOverlapError: range overlaps an existing year.
        """
        if start_date >= end_date:
            raise InvalidFiscalYearError(
                name, f"start_date ({start_date}) must be before end_date ({end_date})"
            )
        if self.session.execute(
            select(FiscalYear.id).where(FiscalYear.name == name)
        ).first() is not None:
            raise InvalidFiscalYearError(name, "name already used")

        # Two ranges overlap if start1 <= end2 AND start2 <= end1
        overlapping = self.session.execute(
            select(FiscalYear).where(
                FiscalYear.start_date <= end_date,
                FiscalYear.end_date >= start_date,
            )
        ).scalars().first()
        if overlapping is not None:
            raise FiscalYearOverlapError(name, overlapping.name)

        fiscal_year = FiscalYear(
            name=name,
            start_date=start_date,
            end_date=end_date,
            status=FiscalYearStatus.OPEN.value,
            created_by_id=actor_id,
        )
        self.session.add(fiscal_year)
        self.session.flush()

        logger.info(
            "fiscal_year_created",
            extra={
                "fiscal_year": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
            },
        )
        return FiscalYearInfo.from_model(fiscal_year)

    def close_fiscal_year(self, fiscal_year_id: UUID, *, actor_id: UUID) -> FiscalYearInfo:
        """
        Close a fiscal year (terminal).

        Uses SELECT FOR UPDATE to serialize concurrent close attempts.
        """
        fiscal_year = self.session.execute(
            select(FiscalYear)
            .where(FiscalYear.id == fiscal_year_id)
            .with_for_update()
        ).scalar_one_or_none()
        if fiscal_year is None:
            raise FiscalYearNotFoundError(str(fiscal_year_id))
        if not fiscal_year.is_open:
            raise FiscalYearAlreadyClosedError(fiscal_year.name)

        fiscal_year.status = FiscalYearStatus.CLOSED.value
        fiscal_year.closed_at = self._clock.now()
        fiscal_year.closed_by_id = actor_id
        fiscal_year.updated_by_id = actor_id
        self.session.flush()

        logger.info("fiscal_year_closed", extra={"fiscal_year": fiscal_year.name})
        return FiscalYearInfo.from_model(fiscal_year)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_fiscal_year(self, fiscal_year_id: UUID) -> FiscalYearInfo:
        return FiscalYearInfo.from_model(self._get_or_raise(fiscal_year_id))

    def list_fiscal_years(self) -> list[FiscalYearInfo]:
        """All years, most recent first."""
        stmt = select(FiscalYear).order_by(FiscalYear.start_date.desc())
        return [FiscalYearInfo.from_model(fy) for fy in self.session.scalars(stmt)]

    def get_default_fiscal_year(self, for_date: date | None = None) -> FiscalYearInfo | None:
        """
        Default target for new entries.

        The open year containing for_date when one exists, otherwise the most
        recent open year.  None when no year is open.
        """
        fiscal_year = self._default_orm(for_date)
        return FiscalYearInfo.from_model(fiscal_year) if fiscal_year else None

    # ------------------------------------------------------------------
    # Entry-date validation (used by EntryWriter / EntryLifecycleService)
    # ------------------------------------------------------------------

    def resolve_for_entry(self, fiscal_year_id: UUID | None, entry_date: date) -> FiscalYear:
        """Pick the entry's fiscal year and check the date against it."""
        if fiscal_year_id is None:
            fiscal_year = self._default_orm(entry_date)
            if fiscal_year is None:
                raise FiscalYearNotFoundError("no open fiscal year")
        else:
            fiscal_year = self._get_or_raise(fiscal_year_id)
        self.validate_entry_date(fiscal_year, entry_date)
        return fiscal_year

    def validate_entry_date(self, fiscal_year: FiscalYear, entry_date: date) -> None:
        if not fiscal_year.is_open:
            logger.warning(
                "fiscal_year_closed_violation",
                extra={
                    "invariant": LedgerInvariant.FISCAL_YEAR_BOUNDS.value,
                    "fiscal_year": fiscal_year.name,
                },
            )
            raise ClosedFiscalYearError(fiscal_year.name)
        if not fiscal_year.contains(entry_date):
            logger.warning(
                "entry_date_out_of_range",
                extra={
                    "invariant": LedgerInvariant.FISCAL_YEAR_BOUNDS.value,
                    "fiscal_year": fiscal_year.name,
                    "entry_date": str(entry_date),
                },
            )
            raise EntryDateOutOfRangeError(
                str(entry_date), str(fiscal_year.start_date), str(fiscal_year.end_date)
            )

    def _get_or_raise(self, fiscal_year_id: UUID) -> FiscalYear:
        fiscal_year = self.session.get(FiscalYear, fiscal_year_id)
        if fiscal_year is None:
            raise FiscalYearNotFoundError(str(fiscal_year_id))
        return fiscal_year

    def _default_orm(self, for_date: date | None) -> FiscalYear | None:
        open_years = select(FiscalYear).where(
            FiscalYear.status == FiscalYearStatus.OPEN.value
        )
        if for_date is not None:
            containing = self.session.execute(
                open_years.where(
                    FiscalYear.start_date <= for_date,
                    FiscalYear.end_date >= for_date,
                )
            ).scalars().first()
            if containing is not None:
                return containing
        return self.session.execute(
            open_years.order_by(FiscalYear.start_date.desc())
        ).scalars().first()
