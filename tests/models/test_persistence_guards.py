"""
Persistence-level guarantees that hold without the services.

- MoneyAmount round-trips two-digit Decimals
- closed fiscal years are frozen
- accounts referenced by entry lines cannot be deleted
- the entry sequence counter only moves forward
- only active detail accounts take entry lines
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.db.types import to_money
from ledger_kernel.exceptions import (
    AccountReferencedError,
    ImmutabilityViolationError,
    InvalidAmountError,
)
from ledger_kernel.models.account import Account
from ledger_kernel.models.entry import EntryLine
from ledger_kernel.models.fiscal_year import FiscalYear
from ledger_kernel.services.sequence_service import SequenceService


class TestMoneyColumns:

    def test_amounts_reload_as_decimal(self, post_entry, session):
        entry = post_entry("OD-1", date(2024, 1, 2), "OD", [("5141", "1234.5", "0"), ("1111", "0", "1234.50")])
        session.expire_all()
        line = session.get(EntryLine, entry.lines[0].id)
        assert isinstance(line.debit, Decimal)
        assert line.debit == Decimal("1234.50")
        assert str(line.credit) == "0.00"

    @pytest.mark.parametrize("value", [1.5, True, "abc", Decimal("NaN"), Decimal("0.001")])
    def test_to_money_rejects(self, value):
        with pytest.raises(InvalidAmountError):
            to_money(value)


class TestClosedFiscalYear:

    def test_bounds_frozen(self, fiscal_year, fiscal_year_service, session, test_actor_id):
        fiscal_year_service.close_fiscal_year(fiscal_year.id, actor_id=test_actor_id)
        with pytest.raises(ImmutabilityViolationError):
            with session.begin_nested():
                session.get(FiscalYear, fiscal_year.id).end_date = date(2025, 6, 30)
                session.flush()

    def test_cannot_reopen(self, fiscal_year, fiscal_year_service, session, test_actor_id):
        fiscal_year_service.close_fiscal_year(fiscal_year.id, actor_id=test_actor_id)
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            with session.begin_nested():
                session.get(FiscalYear, fiscal_year.id).status = "open"
                session.flush()
        assert exc_info.value.entity_type == "FiscalYear"

    def test_open_year_editable(self, fiscal_year, session):
        session.get(FiscalYear, fiscal_year.id).name = "Exercice 2024"
        session.flush()


class TestAccountDeletion:

    def test_referenced_account_delete_blocked(self, post_entry, standard_accounts, session):
        post_entry("OD-1", date(2024, 1, 2), "OD", [("5141", "5", "0"), ("1111", "0", "5")], validate=False)
        with pytest.raises(AccountReferencedError):
            with session.begin_nested():
                session.delete(session.get(Account, standard_accounts["5141"].id))
                session.flush()


class TestSequence:

    def test_next_value_increments(self, session):
        sequence = SequenceService(session)
        assert sequence.current_value("test_counter") is None
        values = [sequence.next_value("test_counter") for _ in range(3)]
        assert values == [1, 2, 3]
        assert sequence.current_value("test_counter") == 3

    def test_counters_are_independent(self, session):
        sequence = SequenceService(session)
        sequence.next_value("a")
        sequence.next_value("a")
        assert sequence.next_value("b") == 1


class TestAccountLineEligibility:

    @pytest.mark.parametrize(
        "account_type, is_active, expected",
        [
            ("detail", True, True),
            ("detail", False, False),
            ("title", True, False),
            ("title", False, False),
        ],
    )
    def test_can_receive_lines(self, account_type, is_active, expected):
        account = Account(code="6122", name="Carburant", account_type=account_type, is_active=is_active)
        assert account.can_receive_lines is expected
