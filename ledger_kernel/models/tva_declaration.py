"""
Module: ledger_kernel.models.tva_declaration
Responsibility: ORM persistence for periodic VAT (TVA) declarations.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - DRAFT -> SUBMITTED is one-way; submitted declarations are frozen
      (TvaService checks plus ORM listeners in db/immutability.py).
    - tva_due and tva_to_pay are computed once by domain/tva.py and stored;
      the carried-forward credit (new_credit_report) is not persisted.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, MoneyAmount


class TvaRegime(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class DeclarationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"


class TvaDeclaration(TrackedBase):
    __tablename__ = "tva_declarations"

    __table_args__ = (
        CheckConstraint("period_start <= period_end", name="ck_tva_period"),
        Index("idx_tva_period", "period_start", "period_end"),
        Index("idx_tva_status", "status"),
    )

    period_start: Mapped[date] = mapped_column(Date, nullable=False)

    period_end: Mapped[date] = mapped_column(Date, nullable=False)

    regime: Mapped[TvaRegime] = mapped_column(String(10), nullable=False)

    # Collected VAT per bracket
    tva_collected_20: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)
    tva_collected_14: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)
    tva_collected_10: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)
    tva_collected_7: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)

    # Deductible VAT buckets
    tva_deductible_immobilisations: Mapped[Decimal] = mapped_column(
        MoneyAmount(), default=ZERO, nullable=False
    )
    tva_deductible_charges: Mapped[Decimal] = mapped_column(
        MoneyAmount(), default=ZERO, nullable=False
    )

    # Credit carried in from the previous period
    credit_report: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)

    tva_due: Mapped[Decimal] = mapped_column(MoneyAmount(), nullable=False)

    tva_to_pay: Mapped[Decimal] = mapped_column(MoneyAmount(), nullable=False)

    status: Mapped[DeclarationStatus] = mapped_column(
        String(20),
        default=DeclarationStatus.DRAFT.value,
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    submitted_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<TvaDeclaration {self.period_start}..{self.period_end} {self.status}>"

    @property
    def is_submitted(self) -> bool:
        return self.status == DeclarationStatus.SUBMITTED
