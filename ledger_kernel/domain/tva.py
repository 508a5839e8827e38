"""
TVA -- pure VAT declaration arithmetic.

Responsibility:
    Computes the derived figures of a periodic VAT declaration from the
    user-supplied bracket totals.  Also owns the set of legal line rates and
    the per-line VAT amount default.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Formulas:
    total_collected   = sum of collected VAT over the 20/14/10/7 brackets
    total_deductible  = deductible on fixed assets + deductible on charges
    tva_due           = total_collected - total_deductible
    tva_to_pay        = max(0, tva_due - credit_report)
    new_credit_report = |tva_due| + credit_report  if tva_due < 0
                        credit_report - tva_due    if credit_report > tva_due
                        0                          otherwise
"""

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.db.types import ZERO, round_money, to_non_negative_money
from ledger_kernel.exceptions import InvalidTvaRateError

# Allowed VAT rates on a line, in percent
TVA_RATES: frozenset[int] = frozenset({0, 7, 10, 14, 20})

# Brackets reported on a declaration (0% has nothing to collect)
COLLECTED_BRACKETS: tuple[int, ...] = (20, 14, 10, 7)


def validate_tva_rate(rate: object) -> int:
    if isinstance(rate, bool) or not isinstance(rate, int) or rate not in TVA_RATES:
        raise InvalidTvaRateError(rate)
    return rate


def line_tva_amount(base: Decimal, rate: int) -> Decimal:
    """VAT on a line: base * rate / 100, rounded half-up to the centime."""
    return round_money(base * Decimal(validate_tva_rate(rate)) / Decimal(100))


@dataclass(frozen=True)
class TvaCollected:
    """Collected VAT per rate bracket."""

    rate_20: Decimal = ZERO
    rate_14: Decimal = ZERO
    rate_10: Decimal = ZERO
    rate_7: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("rate_20", "rate_14", "rate_10", "rate_7"):
            object.__setattr__(self, name, to_non_negative_money(getattr(self, name)))

    @property
    def total(self) -> Decimal:
        return self.rate_20 + self.rate_14 + self.rate_10 + self.rate_7

    @classmethod
    def from_brackets(cls, brackets: dict[int, Decimal]) -> "TvaCollected":
        """Build from a {rate: amount} mapping, e.g. {20: Decimal("1000")}."""
        unknown = set(brackets) - set(COLLECTED_BRACKETS)
        if unknown:
            raise InvalidTvaRateError(sorted(unknown)[0])
        return cls(
            rate_20=brackets.get(20, ZERO),
            rate_14=brackets.get(14, ZERO),
            rate_10=brackets.get(10, ZERO),
            rate_7=brackets.get(7, ZERO),
        )


@dataclass(frozen=True)
class TvaDeductible:
    """Deductible VAT on fixed assets and on charges."""

    immobilisations: Decimal = ZERO
    charges: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "immobilisations", to_non_negative_money(self.immobilisations))
        object.__setattr__(self, "charges", to_non_negative_money(self.charges))

    @property
    def total(self) -> Decimal:
        return self.immobilisations + self.charges


@dataclass(frozen=True)
class TvaComputation:
    total_collected: Decimal
    total_deductible: Decimal
    tva_due: Decimal
    tva_to_pay: Decimal
    new_credit_report: Decimal


def compute_tva(
    collected: TvaCollected,
    deductible: TvaDeductible,
    credit_report: Decimal = ZERO,
) -> TvaComputation:
    """Apply the declaration formulas.  Pure; same inputs, same output."""
    credit_report = to_non_negative_money(credit_report)

    total_collected = collected.total
    total_deductible = deductible.total
    tva_due = total_collected - total_deductible
    tva_to_pay = max(ZERO, tva_due - credit_report)

    if tva_due < ZERO:
        new_credit_report = abs(tva_due) + credit_report
    elif credit_report > tva_due:
        new_credit_report = credit_report - tva_due
    else:
        new_credit_report = ZERO

    return TvaComputation(
        total_collected=round_money(total_collected),
        total_deductible=round_money(total_deductible),
        tva_due=round_money(tva_due),
        tva_to_pay=round_money(tva_to_pay),
        new_credit_report=round_money(new_credit_report),
    )
