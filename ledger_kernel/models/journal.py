"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journals (ACH, VTE, BQ, CAI, OD...),
    the books entries are recorded in.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from enum import Enum

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class JournalType(str, Enum):
    PURCHASES = "purchases"
    SALES = "sales"
    BANK = "bank"
    CASH = "cash"
    GENERAL = "general"


class Journal(TrackedBase):
    """A book of original entry.  Inactive journals accept no new entries."""

    __tablename__ = "journals"

    __table_args__ = (UniqueConstraint("code", name="uq_journal_code"),)

    code: Mapped[str] = mapped_column(String(10), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    journal_type: Mapped[JournalType] = mapped_column(String(20), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Journal {self.code}: {self.name}>"
