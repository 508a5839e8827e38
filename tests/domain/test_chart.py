"""Tests for chart-of-accounts rules (ledger_kernel/domain/chart.py)."""

import pytest

from ledger_kernel.domain.chart import (
    ACCOUNT_CLASSES,
    class_label,
    is_valid_parent_code,
    validate_account_class,
)
from ledger_kernel.exceptions import InvalidAccountClassError


class TestAccountClass:

    @pytest.mark.parametrize("value", [1, 4, 7])
    def test_valid(self, value):
        assert validate_account_class(value) == value

    @pytest.mark.parametrize("value", [0, 8, -1, "3", 3.0, None, True])
    def test_invalid(self, value):
        with pytest.raises(InvalidAccountClassError):
            validate_account_class(value)

    def test_every_class_has_a_label(self):
        for account_class in ACCOUNT_CLASSES:
            assert class_label(account_class)
            assert class_label(account_class, lang="en")

    def test_labels(self):
        assert class_label(6) == "Charges"
        assert class_label(6, lang="en") == "Expenses"


class TestParentCode:

    def test_strict_prefix(self):
        assert is_valid_parent_code("34", "3421")
        assert is_valid_parent_code("3", "34")

    def test_same_code_is_not_a_parent(self):
        assert not is_valid_parent_code("3421", "3421")

    def test_non_prefix(self):
        assert not is_valid_parent_code("44", "3421")
