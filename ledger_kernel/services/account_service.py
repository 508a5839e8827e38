"""
AccountService -- chart-of-accounts registry.

Responsibility:
    Creates, lists, activates/deactivates and deletes accounts of the plan
    comptable.  Returns frozen ``AccountInfo`` DTOs.

Invariants enforced:
    - code non-empty and unique (pre-check plus uq_account_code).
    - account_class in 1..7, nature in {debit, credit}, account_type in
      {detail, title}.
    - parent_code, when given, names an existing TITLE account whose code is
      a strict prefix of the new code.
    - An account referenced by any entry line cannot be deleted (also
      enforced by the before_flush listener in db/immutability.py).

Failure modes:
    - InvalidAccountClassError / InvalidAccountDefinitionError (validation).
    - DuplicateAccountCodeError (conflict).
    - AccountNotFoundError.
    - AccountReferencedError on delete of a referenced account.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.chart import is_valid_parent_code, validate_account_class
from ledger_kernel.domain.dtos import AccountInfo
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateAccountCodeError,
    InvalidAccountDefinitionError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountNature, AccountType
from ledger_kernel.models.entry import EntryLine
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account")

_NATURES = frozenset(n.value for n in AccountNature)
_TYPES = frozenset(t.value for t in AccountType)


class AccountService(BaseService[Account]):
    """Account registry.  Flush-only."""

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_account(
        self,
        code: str,
        name: str,
        account_class: int,
        nature: str,
        account_type: str = AccountType.DETAIL.value,
        parent_code: str | None = None,
        notes: str | None = None,
        *,
        actor_id: UUID,
    ) -> AccountInfo:
        """
        Create an account.

        Raises:
            InvalidAccountDefinitionError: empty code/name, bad nature, bad
                type, or bad parent.
            InvalidAccountClassError: class outside 1..7.
            DuplicateAccountCodeError: code already used.
        """
        code = (code or "").strip()
        if not code:
            raise InvalidAccountDefinitionError(code, "code must not be empty")
        if not (name or "").strip():
            raise InvalidAccountDefinitionError(code, "name must not be empty")
        validate_account_class(account_class)

        nature = getattr(nature, "value", nature)
        if nature not in _NATURES:
            raise InvalidAccountDefinitionError(code, f"nature must be debit or credit, got {nature!r}")
        account_type = getattr(account_type, "value", account_type)
        if account_type not in _TYPES:
            raise InvalidAccountDefinitionError(
                code, f"account_type must be detail or title, got {account_type!r}"
            )

        if self._get_by_code(code) is not None:
            raise DuplicateAccountCodeError(code)

        if parent_code:
            self._validate_parent(code, parent_code)

        account = Account(
            code=code,
            name=name.strip(),
            account_class=account_class,
            nature=nature,
            account_type=account_type,
            parent_code=parent_code or None,
            is_active=True,
            notes=notes,
            created_by_id=actor_id,
        )

        savepoint = self.session.begin_nested()
        try:
            self.session.add(account)
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            raise DuplicateAccountCodeError(code)
        savepoint.commit()

        logger.info(
            "account_created",
            extra={
                "account_code": code,
                "account_class": account_class,
                "account_type": account_type,
            },
        )
        return AccountInfo.from_model(account)

    def deactivate_account(self, account_id: UUID, *, actor_id: UUID) -> AccountInfo:
        """Soft-deactivate: the account stays, but accepts no new lines."""
        return self._set_active(account_id, False, actor_id)

    def reactivate_account(self, account_id: UUID, *, actor_id: UUID) -> AccountInfo:
        return self._set_active(account_id, True, actor_id)

    def delete_account(self, account_id: UUID, *, actor_id: UUID) -> None:
        """Hard-delete an account that no entry line references."""
        account = self._get_or_raise(account_id)

        if self._line_count(account.id):
            logger.warning(
                "account_delete_rejected",
                extra={"account_code": account.code, "reason": "referenced"},
            )
            raise AccountReferencedError(str(account.id))

        self.session.delete(account)
        self.session.flush()
        logger.info(
            "account_deleted",
            extra={"account_code": account.code, "deleted_by": str(actor_id)},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_accounts(
        self,
        account_class: int | None = None,
        active_only: bool = False,
    ) -> list[AccountInfo]:
        """Accounts ordered by code, optionally filtered by class and activity."""
        stmt = select(Account).order_by(Account.code)
        if account_class is not None:
            stmt = stmt.where(Account.account_class == validate_account_class(account_class))
        if active_only:
            stmt = stmt.where(Account.is_active.is_(True))
        return [AccountInfo.from_model(a) for a in self.session.scalars(stmt)]

    def get_account(self, account_id: UUID) -> AccountInfo:
        return AccountInfo.from_model(self._get_or_raise(account_id))

    def get_account_by_code(self, code: str) -> AccountInfo:
        account = self._get_by_code(code)
        if account is None:
            raise AccountNotFoundError(code)
        return AccountInfo.from_model(account)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_raise(self, account_id: UUID) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _get_by_code(self, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def _line_count(self, account_id: UUID) -> int:
        return self.session.execute(
            select(func.count(EntryLine.id)).where(EntryLine.account_id == account_id)
        ).scalar_one()

    def _validate_parent(self, code: str, parent_code: str) -> None:
        parent = self._get_by_code(parent_code)
        if parent is None:
            raise InvalidAccountDefinitionError(code, f"parent account {parent_code} does not exist")
        if parent.account_type != AccountType.TITLE:
            raise InvalidAccountDefinitionError(code, f"parent account {parent_code} is not a title account")
        if not is_valid_parent_code(parent_code, code):
            raise InvalidAccountDefinitionError(code, f"parent code {parent_code} is not a prefix of {code}")

    def _set_active(self, account_id: UUID, active: bool, actor_id: UUID) -> AccountInfo:
        account = self._get_or_raise(account_id)
        if account.is_active != active:
            account.is_active = active
            account.updated_by_id = actor_id
            self.session.flush()
            logger.info(
                "account_activated" if active else "account_deactivated",
                extra={"account_code": account.code},
            )
        return AccountInfo.from_model(account)
