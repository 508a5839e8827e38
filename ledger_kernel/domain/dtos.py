"""
DTOs -- immutable data transfer objects.

Responsibility:
    Defines the frozen dataclasses services accept (EntryLineSpec) and return
    (AccountInfo, EntryInfo, ...).  Services and selectors never hand ORM
    instances to callers.

Architecture position:
    Kernel > Domain.  from_model() class methods are boundary converters and
    are only invoked from the service/selector layer.

Failure modes:
    - InvalidAmountError on EntryLineSpec with a negative, float or
      sub-centime amount.
    - InvalidTvaRateError on EntryLineSpec with a rate outside the legal set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.db.types import ZERO, to_non_negative_money
from ledger_kernel.domain.tva import TvaComputation, validate_tva_rate

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.entry import Entry, EntryLine
    from ledger_kernel.models.fiscal_year import FiscalYear
    from ledger_kernel.models.journal import Journal
    from ledger_kernel.models.tva_declaration import TvaDeclaration


def _value(status) -> str:
    return getattr(status, "value", status)


# =============================================================================
# Registries
# =============================================================================


@dataclass(frozen=True)
class AccountInfo:
    id: UUID
    code: str
    name: str
    account_class: int
    nature: str
    account_type: str
    parent_code: str | None
    is_active: bool
    notes: str | None = None

    @property
    def is_detail(self) -> bool:
        return self.account_type == "detail"

    @classmethod
    def from_model(cls, model: Account) -> AccountInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            account_class=model.account_class,
            nature=_value(model.nature),
            account_type=_value(model.account_type),
            parent_code=model.parent_code,
            is_active=model.is_active,
            notes=model.notes,
        )


@dataclass(frozen=True)
class JournalInfo:
    id: UUID
    code: str
    name: str
    journal_type: str
    is_active: bool

    @classmethod
    def from_model(cls, model: Journal) -> JournalInfo:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            journal_type=_value(model.journal_type),
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class FiscalYearInfo:
    id: UUID
    name: str
    start_date: date
    end_date: date
    status: str
    closed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @classmethod
    def from_model(cls, model: FiscalYear) -> FiscalYearInfo:
        return cls(
            id=model.id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            status=_value(model.status),
            closed_at=model.closed_at,
        )


# =============================================================================
# Entries
# =============================================================================


@dataclass(frozen=True)
class EntryLineSpec:
    """
    Caller-supplied line of a new or edited entry.

    Guarantees:
        - debit and credit are non-negative two-digit Decimals.
        - tva_rate is one of 0, 7, 10, 14, 20.
        - tva_amount is None (derive from the line) or a non-negative Decimal.
    """

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    label: str | None = None
    tva_rate: int = 0
    tva_amount: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_non_negative_money(self.debit))
        object.__setattr__(self, "credit", to_non_negative_money(self.credit))
        validate_tva_rate(self.tva_rate)
        if self.tva_amount is not None:
            object.__setattr__(self, "tva_amount", to_non_negative_money(self.tva_amount))

    @property
    def base(self) -> Decimal:
        """Amount VAT applies to: the debit side if set, else the credit side."""
        return self.debit if self.debit > ZERO else self.credit

    @classmethod
    def debit_line(cls, account_id: UUID, amount, label: str | None = None, **kw) -> EntryLineSpec:
        return cls(account_id=account_id, debit=amount, label=label, **kw)

    @classmethod
    def credit_line(cls, account_id: UUID, amount, label: str | None = None, **kw) -> EntryLineSpec:
        return cls(account_id=account_id, credit=amount, label=label, **kw)


@dataclass(frozen=True)
class EntryLineInfo:
    id: UUID
    account_id: UUID
    account_code: str
    label: str | None
    debit: Decimal
    credit: Decimal
    tva_rate: int
    tva_amount: Decimal
    line_seq: int

    @classmethod
    def from_model(cls, model: EntryLine) -> EntryLineInfo:
        return cls(
            id=model.id,
            account_id=model.account_id,
            account_code=model.account.code,
            label=model.label,
            debit=model.debit,
            credit=model.credit,
            tva_rate=model.tva_rate,
            tva_amount=model.tva_amount,
            line_seq=model.line_seq,
        )


@dataclass(frozen=True)
class EntryInfo:
    id: UUID
    entry_number: str
    entry_date: date
    journal_id: UUID
    journal_code: str
    fiscal_year_id: UUID
    description: str | None
    reference: str | None
    source_type: str | None
    source_id: str | None
    status: str
    total_debit: Decimal
    total_credit: Decimal
    seq: int
    validated_at: datetime | None = None
    lines: tuple[EntryLineInfo, ...] = field(default_factory=tuple)

    @property
    def is_draft(self) -> bool:
        return self.status == "draft"

    @property
    def is_validated(self) -> bool:
        return self.status == "validated"

    @classmethod
    def from_model(cls, model: Entry) -> EntryInfo:
        return cls(
            id=model.id,
            entry_number=model.entry_number,
            entry_date=model.entry_date,
            journal_id=model.journal_id,
            journal_code=model.journal.code,
            fiscal_year_id=model.fiscal_year_id,
            description=model.description,
            reference=model.reference,
            source_type=model.source_type,
            source_id=model.source_id,
            status=_value(model.status),
            total_debit=model.total_debit,
            total_credit=model.total_credit,
            seq=model.seq,
            validated_at=model.validated_at,
            lines=tuple(EntryLineInfo.from_model(line) for line in model.lines),
        )


# =============================================================================
# VAT
# =============================================================================


@dataclass(frozen=True)
class TvaDeclarationInfo:
    id: UUID
    period_start: date
    period_end: date
    regime: str
    tva_collected_20: Decimal
    tva_collected_14: Decimal
    tva_collected_10: Decimal
    tva_collected_7: Decimal
    tva_deductible_immobilisations: Decimal
    tva_deductible_charges: Decimal
    credit_report: Decimal
    tva_due: Decimal
    tva_to_pay: Decimal
    status: str
    notes: str | None
    computation: TvaComputation
    submitted_at: datetime | None = None

    @property
    def new_credit_report(self) -> Decimal:
        """Credit to carry into the next period (not persisted)."""
        return self.computation.new_credit_report

    @property
    def is_submitted(self) -> bool:
        return self.status == "submitted"

    @classmethod
    def from_model(cls, model: TvaDeclaration, computation: TvaComputation) -> TvaDeclarationInfo:
        return cls(
            id=model.id,
            period_start=model.period_start,
            period_end=model.period_end,
            regime=_value(model.regime),
            tva_collected_20=model.tva_collected_20,
            tva_collected_14=model.tva_collected_14,
            tva_collected_10=model.tva_collected_10,
            tva_collected_7=model.tva_collected_7,
            tva_deductible_immobilisations=model.tva_deductible_immobilisations,
            tva_deductible_charges=model.tva_deductible_charges,
            credit_report=model.credit_report,
            tva_due=model.tva_due,
            tva_to_pay=model.tva_to_pay,
            status=_value(model.status),
            notes=model.notes,
            computation=computation,
            submitted_at=model.submitted_at,
        )
