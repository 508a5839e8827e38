"""
Tests for AccountService -- chart-of-accounts registry.

Covers:
- create_account(): happy path, empty code, class outside 1..7, bad nature,
  bad type, parent rules, duplicate code
- deactivate/reactivate, list filters and ordering
- delete_account(): unreferenced vs referenced accounts
"""

from datetime import date
from uuid import uuid4

import pytest

from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    ConflictError,
    DuplicateAccountCodeError,
    InvalidAccountClassError,
    InvalidAccountDefinitionError,
    ValidationError,
)


class TestCreateAccount:

    def test_create_detail_account(self, account_service, test_actor_id):
        info = account_service.create_account(
            "5141", "Banques", 5, "debit", actor_id=test_actor_id
        )
        assert info.code == "5141"
        assert info.account_class == 5
        assert info.nature == "debit"
        assert info.account_type == "detail"
        assert info.is_active
        assert info.is_detail

    def test_code_is_stripped(self, account_service, test_actor_id):
        info = account_service.create_account(" 5161 ", "Caisse", 5, "debit", actor_id=test_actor_id)
        assert info.code == "5161"

    def test_empty_code_rejected(self, account_service, test_actor_id):
        with pytest.raises(InvalidAccountDefinitionError):
            account_service.create_account("  ", "Nameless", 5, "debit", actor_id=test_actor_id)

    @pytest.mark.parametrize("account_class", [0, 8, 9])
    def test_class_out_of_range(self, account_service, test_actor_id, account_class):
        with pytest.raises(InvalidAccountClassError) as exc_info:
            account_service.create_account("9999", "X", account_class, "debit", actor_id=test_actor_id)
        assert isinstance(exc_info.value, ValidationError)

    def test_bad_nature(self, account_service, test_actor_id):
        with pytest.raises(InvalidAccountDefinitionError):
            account_service.create_account("5141", "Banques", 5, "asset", actor_id=test_actor_id)

    def test_bad_type(self, account_service, test_actor_id):
        with pytest.raises(InvalidAccountDefinitionError):
            account_service.create_account(
                "5141", "Banques", 5, "debit", account_type="group", actor_id=test_actor_id
            )

    def test_duplicate_code_is_conflict(self, account_service, test_actor_id):
        account_service.create_account("4411", "Fournisseurs", 4, "credit", actor_id=test_actor_id)
        with pytest.raises(DuplicateAccountCodeError) as exc_info:
            account_service.create_account("4411", "Autre", 4, "credit", actor_id=test_actor_id)
        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.account_code == "4411"

    def test_parent_must_exist(self, account_service, test_actor_id):
        with pytest.raises(InvalidAccountDefinitionError, match="does not exist"):
            account_service.create_account(
                "3421", "Clients", 3, "debit", parent_code="34", actor_id=test_actor_id
            )

    def test_parent_must_be_title(self, account_service, test_actor_id):
        account_service.create_account("34", "Créances", 3, "debit", actor_id=test_actor_id)
        with pytest.raises(InvalidAccountDefinitionError, match="not a title"):
            account_service.create_account(
                "3421", "Clients", 3, "debit", parent_code="34", actor_id=test_actor_id
            )

    def test_parent_must_prefix_code(self, account_service, test_actor_id):
        account_service.create_account(
            "44", "Dettes", 4, "credit", account_type="title", actor_id=test_actor_id
        )
        with pytest.raises(InvalidAccountDefinitionError, match="not a prefix"):
            account_service.create_account(
                "3421", "Clients", 3, "debit", parent_code="44", actor_id=test_actor_id
            )

    def test_child_of_title(self, account_service, test_actor_id):
        account_service.create_account(
            "34", "Créances", 3, "debit", account_type="title", actor_id=test_actor_id
        )
        info = account_service.create_account(
            "3421", "Clients", 3, "debit", parent_code="34", actor_id=test_actor_id
        )
        assert info.parent_code == "34"

    def test_creation_logged(self, account_service, test_actor_id, captured_logs):
        account_service.create_account("5141", "Banques", 5, "debit", actor_id=test_actor_id)
        created = [r for r in captured_logs() if r["message"] == "account_created"]
        assert created and created[0]["account_code"] == "5141"


class TestActivation:

    def test_deactivate_and_reactivate(self, account_service, test_actor_id):
        info = account_service.create_account("5141", "Banques", 5, "debit", actor_id=test_actor_id)
        assert not account_service.deactivate_account(info.id, actor_id=test_actor_id).is_active
        assert account_service.reactivate_account(info.id, actor_id=test_actor_id).is_active

    def test_deactivate_unknown(self, account_service, test_actor_id):
        with pytest.raises(AccountNotFoundError):
            account_service.deactivate_account(uuid4(), actor_id=test_actor_id)


class TestListAccounts:

    def test_ordered_by_code_with_filters(self, standard_accounts, account_service, test_actor_id):
        codes = [a.code for a in account_service.list_accounts()]
        assert codes == sorted(codes)

        class_five = [a.code for a in account_service.list_accounts(account_class=5)]
        assert class_five == ["5", "5141", "5161"]

        account_service.deactivate_account(standard_accounts["5161"].id, actor_id=test_actor_id)
        active = [a.code for a in account_service.list_accounts(account_class=5, active_only=True)]
        assert active == ["5", "5141"]

    def test_get_by_code(self, standard_accounts, account_service):
        assert account_service.get_account_by_code("3421").id == standard_accounts["3421"].id
        with pytest.raises(AccountNotFoundError):
            account_service.get_account_by_code("0000")


class TestDeleteAccount:

    def test_unreferenced_account_deleted(self, account_service, test_actor_id):
        info = account_service.create_account("5161", "Caisse", 5, "debit", actor_id=test_actor_id)
        account_service.delete_account(info.id, actor_id=test_actor_id)
        with pytest.raises(AccountNotFoundError):
            account_service.get_account(info.id)

    def test_referenced_account_kept(self, post_entry, standard_accounts, account_service, test_actor_id):
        post_entry(
            "OD-1", date(2024, 2, 1), "OD",
            [("5141", "100", "0"), ("1111", "0", "100")],
            validate=False,
        )
        with pytest.raises(AccountReferencedError) as exc_info:
            account_service.delete_account(standard_accounts["5141"].id, actor_id=test_actor_id)
        assert isinstance(exc_info.value, ConflictError)
        assert account_service.get_account(standard_accounts["5141"].id).code == "5141"
