"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts (plan comptable),
    the target of every entry line.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - code is unique (uq_account_code).
    - Only active DETAIL accounts may appear on entry lines (enforced by
      EntryWriter, surfaced here via can_receive_lines).
    - An account referenced by entry lines cannot be deleted (service check
      plus before_flush listener in db/immutability.py).
"""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class AccountNature(str, Enum):
    """Normal balance side of an account."""

    DEBIT = "debit"
    CREDIT = "credit"


class AccountType(str, Enum):
    """DETAIL accounts take postings; TITLE accounts only group them."""

    DETAIL = "detail"
    TITLE = "title"


class Account(TrackedBase):
    """
    A single node of the chart of accounts.

    Contract:
        account_class is the first-digit class of the CGNC plan (1-7).
        parent_code, when set, names a TITLE account whose code prefixes
        this account's code.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        CheckConstraint("account_class BETWEEN 1 AND 7", name="ck_account_class"),
        Index("idx_account_class", "account_class"),
        Index("idx_account_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_class: Mapped[int] = mapped_column(Integer, nullable=False)

    nature: Mapped[AccountNature] = mapped_column(String(10), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(
        String(10),
        default=AccountType.DETAIL.value,
        nullable=False,
    )

    parent_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def is_detail(self) -> bool:
        return self.account_type == AccountType.DETAIL

    @property
    def can_receive_lines(self) -> bool:
        """True iff the account is an active DETAIL account."""
        return self.is_active and self.is_detail
