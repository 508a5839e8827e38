"""
Module: ledger_kernel.models.entry
Responsibility: ORM persistence for journal entries (ecritures) and their
    lines -- the single source of ledger truth.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - entry_number is unique (uq_entry_number); the constraint is the arbiter
      under concurrent writers.
    - seq is unique and monotonic (allocated by SequenceService).
    - Balance: |total_debit - total_credit| < 0.01 (checked by EntryWriter at
      creation/edit and by EntryLifecycleService at validation).
    - Header totals equal the sum of the lines; they are computed server-side.
    - Immutability after VALIDATED (ORM listeners in db/immutability.py plus
      service-level checks).

Failure modes:
    - IntegrityError on duplicate entry_number (mapped to
      DuplicateEntryNumberError by EntryWriter).
    - ImmutabilityViolationError on UPDATE/DELETE of a validated entry/line.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.db.types import ZERO, MoneyAmount

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.fiscal_year import FiscalYear
    from ledger_kernel.models.journal import Journal


class EntryStatus(str, Enum):
    """Contract: DRAFT -> VALIDATED only; validated entries are final."""

    DRAFT = "draft"
    VALIDATED = "validated"


class Entry(TrackedBase):
    """
    A dated, numbered, balanced set of lines recorded in one journal.

    Contract:
        Created as DRAFT by EntryWriter.  Only EntryLifecycleService moves it
        to VALIDATED.  After that no field other than audit metadata may
        change and the row cannot be deleted.
    """

    __tablename__ = "entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_entry_number"),
        UniqueConstraint("seq", name="uq_entry_seq"),
        Index("idx_entry_date", "entry_date"),
        Index("idx_entry_journal", "journal_id"),
        Index("idx_entry_fiscal_year", "fiscal_year_id"),
        Index("idx_entry_status", "status"),
        Index("idx_entry_source", "source_type", "source_id"),
    )

    entry_number: Mapped[str] = mapped_column(String(50), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    journal_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journals.id"),
        nullable=False,
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Originating document (invoice, payment, or "entry_reversal")
    source_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    status: Mapped[EntryStatus] = mapped_column(
        String(20),
        default=EntryStatus.DRAFT.value,
        nullable=False,
    )

    total_debit: Mapped[Decimal] = mapped_column(MoneyAmount(), nullable=False)

    total_credit: Mapped[Decimal] = mapped_column(MoneyAmount(), nullable=False)

    # Creation order; the grand livre sorts on it
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    validated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    validated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    lines: Mapped[list["EntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="EntryLine.line_seq",
    )

    journal: Mapped["Journal"] = relationship(lazy="joined")

    fiscal_year: Mapped["FiscalYear"] = relationship()

    def __repr__(self) -> str:
        return f"<Entry {self.entry_number} status={self.status}>"

    @property
    def is_draft(self) -> bool:
        return self.status == EntryStatus.DRAFT

    @property
    def is_validated(self) -> bool:
        return self.status == EntryStatus.VALIDATED

    @property
    def line_debits(self) -> Decimal:
        """Sum of line debits (compare against total_debit)."""
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def line_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


class EntryLine(TrackedBase):
    """
    One debit and/or credit against a detail account.

    Both sides may be non-zero on a single line; the governing rule is the
    entry-level balance.
    """

    __tablename__ = "entry_lines"

    __table_args__ = (
        UniqueConstraint("entry_id", "line_seq", name="uq_entry_line_seq"),
        CheckConstraint("tva_rate IN (0, 7, 10, 14, 20)", name="ck_entry_line_tva_rate"),
        Index("idx_entry_line_entry", "entry_id"),
        Index("idx_entry_line_account", "account_id"),
    )

    entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("entries.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    label: Mapped[str | None] = mapped_column(String(255), nullable=True)

    debit: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)

    credit: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)

    tva_rate: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    tva_amount: Mapped[Decimal] = mapped_column(MoneyAmount(), default=ZERO, nullable=False)

    # Position within the entry, 0-based
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    entry: Mapped["Entry"] = relationship(back_populates="lines")

    account: Mapped["Account"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<EntryLine {self.line_seq} D={self.debit} C={self.credit}>"
