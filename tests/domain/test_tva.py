"""Tests for the VAT formulas (ledger_kernel/domain/tva.py)."""

from decimal import Decimal

import pytest

from ledger_kernel.domain.tva import (
    TVA_RATES,
    TvaCollected,
    TvaDeductible,
    compute_tva,
    line_tva_amount,
    validate_tva_rate,
)
from ledger_kernel.exceptions import InvalidAmountError, InvalidTvaRateError


def D(value: str) -> Decimal:
    return Decimal(value)


class TestComputeTva:

    def test_amount_due_without_credit(self):
        result = compute_tva(
            TvaCollected.from_brackets({20: D("1000")}),
            TvaDeductible(immobilisations=D("200"), charges=D("300")),
            D("0"),
        )
        assert result.total_collected == D("1000.00")
        assert result.total_deductible == D("500.00")
        assert result.tva_due == D("500.00")
        assert result.tva_to_pay == D("500.00")
        assert result.new_credit_report == D("0.00")

    def test_deductible_exceeds_collected_creates_credit(self):
        result = compute_tva(
            TvaCollected(rate_20=D("100")),
            TvaDeductible(charges=D("600")),
        )
        assert result.tva_due == D("-500.00")
        assert result.tva_to_pay == D("0.00")
        assert result.new_credit_report == D("500.00")

    def test_credit_absorbs_part_of_due(self):
        result = compute_tva(
            TvaCollected(rate_20=D("1000")),
            TvaDeductible(charges=D("400")),
            D("250"),
        )
        assert result.tva_due == D("600.00")
        assert result.tva_to_pay == D("350.00")
        assert result.new_credit_report == D("0.00")

    def test_credit_larger_than_due_is_partly_carried(self):
        result = compute_tva(
            TvaCollected(rate_20=D("300")),
            TvaDeductible(charges=D("100")),
            D("500"),
        )
        assert result.tva_due == D("200.00")
        assert result.tva_to_pay == D("0.00")
        assert result.new_credit_report == D("300.00")

    def test_negative_due_adds_to_existing_credit(self):
        result = compute_tva(
            TvaCollected(rate_7=D("70")),
            TvaDeductible(immobilisations=D("170")),
            D("40"),
        )
        assert result.tva_due == D("-100.00")
        assert result.tva_to_pay == D("0.00")
        assert result.new_credit_report == D("140.00")

    def test_all_brackets_summed(self):
        collected = TvaCollected(
            rate_20=D("20"), rate_14=D("14"), rate_10=D("10"), rate_7=D("7")
        )
        assert collected.total == D("51.00")

    def test_pure(self):
        args = (TvaCollected(rate_20=D("10")), TvaDeductible(charges=D("3")), D("1"))
        assert compute_tva(*args) == compute_tva(*args)

    def test_negative_credit_report_rejected(self):
        with pytest.raises(InvalidAmountError):
            compute_tva(TvaCollected(), TvaDeductible(), D("-1"))

    def test_negative_bracket_rejected(self):
        with pytest.raises(InvalidAmountError):
            TvaCollected(rate_20=D("-1"))

    def test_unknown_bracket_rejected(self):
        with pytest.raises(InvalidTvaRateError):
            TvaCollected.from_brackets({15: D("1")})


class TestLineTva:

    @pytest.mark.parametrize(
        "base,rate,expected",
        [
            ("1000.00", 20, "200.00"),
            ("33.33", 20, "6.67"),
            ("10.05", 10, "1.01"),
            ("500.00", 0, "0.00"),
            ("100.00", 7, "7.00"),
        ],
    )
    def test_half_up(self, base, rate, expected):
        assert line_tva_amount(D(base), rate) == D(expected)

    def test_rates(self):
        assert TVA_RATES == {0, 7, 10, 14, 20}

    @pytest.mark.parametrize("rate", [5, 19, -20, "20", 20.0, True])
    def test_invalid_rate(self, rate):
        with pytest.raises(InvalidTvaRateError):
            validate_tva_rate(rate)
