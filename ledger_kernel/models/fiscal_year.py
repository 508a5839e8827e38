"""
Module: ledger_kernel.models.fiscal_year
Responsibility: ORM persistence for fiscal years (exercices), which bound the
    dates entries may carry.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - start_date < end_date (ck_fiscal_year_dates, and FiscalYearService).
    - OPEN -> CLOSED is one-way.  A closed year accepts no new entries and
      no validations; the row itself is frozen by db/immutability.py.
    - Years do not overlap (checked by FiscalYearService at creation).
"""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class FiscalYearStatus(str, Enum):
    """Contract: OPEN -> CLOSED only; closed years never reopen."""

    OPEN = "open"
    CLOSED = "closed"


class FiscalYear(TrackedBase):
    __tablename__ = "fiscal_years"

    __table_args__ = (
        UniqueConstraint("name", name="uq_fiscal_year_name"),
        CheckConstraint("start_date < end_date", name="ck_fiscal_year_dates"),
        Index("idx_fiscal_year_dates", "start_date", "end_date"),
        Index("idx_fiscal_year_status", "status"),
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    # Inclusive bounds
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[FiscalYearStatus] = mapped_column(
        String(10),
        default=FiscalYearStatus.OPEN.value,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    closed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<FiscalYear {self.name}: {self.status}>"

    @property
    def is_open(self) -> bool:
        return self.status == FiscalYearStatus.OPEN

    def contains(self, day: date) -> bool:
        """Check if day falls within [start_date, end_date]."""
        return self.start_date <= day <= self.end_date
