"""
Module: ledger_kernel.db.types
Responsibility: Money column type and the conversion/rounding helpers every
    model and service uses for monetary values.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Money carries exactly two fraction digits (the ledger currency is MAD;
      centimes are the smallest unit).
    - round_money() is the ONLY sanctioned rounding function (ROUND_HALF_UP).
    - No floats.  to_money() rejects float input outright; amounts finer than
      one centime are rejected rather than silently rounded.

Failure modes:
    - InvalidAmountError from to_money() on float, non-numeric, non-finite or
      sub-centime input.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from ledger_kernel.exceptions import InvalidAmountError

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


class MoneyAmount(TypeDecorator):
    """
    Exact two-digit decimal column.

    PostgreSQL stores NUMERIC(18, 2).  SQLite has no exact decimal storage,
    so the canonical string form is stored instead; values always come back
    as Decimal quantized to two places.
    """

    impl = Numeric(18, MONEY_DECIMAL_PLACES)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(32))
        return dialect.type_descriptor(Numeric(18, MONEY_DECIMAL_PLACES, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        amount = round_money(Decimal(value))
        if dialect.name == "sqlite":
            return str(amount)
        return amount

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return round_money(Decimal(value))


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for ledger values.
    """
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=rounding)


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Normalize user input into a two-digit Decimal.

    Accepts Decimal, int and numeric strings.  Rejects floats, non-finite
    values and anything with precision finer than one centime.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(value, "floats are not accepted for amounts")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise InvalidAmountError(value, "not a number")
    else:
        raise InvalidAmountError(value, f"unsupported type {type(value).__name__}")

    if not amount.is_finite():
        raise InvalidAmountError(value, "not a finite number")
    if amount != round_money(amount):
        raise InvalidAmountError(value, "more than 2 decimal places")
    return round_money(amount)


def to_non_negative_money(value: Decimal | int | str) -> Decimal:
    """to_money() plus a >= 0 check."""
    amount = to_money(value)
    if amount < ZERO:
        raise InvalidAmountError(value, "must be non-negative")
    return amount
