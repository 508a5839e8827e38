"""
JournalService -- journal registry (ACH, VTE, BQ, CAI, OD...).

Journals are created administratively and only their active flag changes
afterwards.  An inactive journal accepts no new entries.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import JournalInfo
from ledger_kernel.exceptions import (
    DuplicateJournalCodeError,
    InvalidJournalError,
    JournalNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import Journal, JournalType
from ledger_kernel.services.base import BaseService

logger = get_logger("services.journal")

_JOURNAL_TYPES = frozenset(t.value for t in JournalType)


class JournalService(BaseService[Journal]):

    def __init__(self, session: Session):
        super().__init__(session)

    def create_journal(
        self,
        code: str,
        name: str,
        journal_type: str,
        *,
        actor_id: UUID,
    ) -> JournalInfo:
        code = (code or "").strip()
        journal_type = getattr(journal_type, "value", journal_type)
        if not code:
            raise InvalidJournalError(code, "journal code must not be empty")
        if journal_type not in _JOURNAL_TYPES:
            raise InvalidJournalError(code, f"unknown journal type {journal_type!r}")
        if self._get_by_code(code) is not None:
            raise DuplicateJournalCodeError(code)

        journal = Journal(
            code=code,
            name=name,
            journal_type=journal_type,
            is_active=True,
            created_by_id=actor_id,
        )
        savepoint = self.session.begin_nested()
        try:
            self.session.add(journal)
            self.session.flush()
        except IntegrityError:
            savepoint.rollback()
            raise DuplicateJournalCodeError(code)
        savepoint.commit()

        logger.info("journal_created", extra={"journal_code": code, "journal_type": journal_type})
        return JournalInfo.from_model(journal)

    def deactivate_journal(self, journal_id: UUID, *, actor_id: UUID) -> JournalInfo:
        journal = self._get_or_raise(journal_id)
        journal.is_active = False
        journal.updated_by_id = actor_id
        self.session.flush()
        logger.info("journal_deactivated", extra={"journal_code": journal.code})
        return JournalInfo.from_model(journal)

    def list_journals(self, active_only: bool = False) -> list[JournalInfo]:
        stmt = select(Journal).order_by(Journal.code)
        if active_only:
            stmt = stmt.where(Journal.is_active.is_(True))
        return [JournalInfo.from_model(j) for j in self.session.scalars(stmt)]

    def get_journal(self, journal_id: UUID) -> JournalInfo:
        return JournalInfo.from_model(self._get_or_raise(journal_id))

    def get_journal_by_code(self, code: str) -> JournalInfo:
        journal = self._get_by_code(code)
        if journal is None:
            raise JournalNotFoundError(code)
        return JournalInfo.from_model(journal)

    def _get_or_raise(self, journal_id: UUID) -> Journal:
        journal = self.session.get(Journal, journal_id)
        if journal is None:
            raise JournalNotFoundError(str(journal_id))
        return journal

    def _get_by_code(self, code: str) -> Journal | None:
        return self.session.execute(
            select(Journal).where(Journal.code == code)
        ).scalar_one_or_none()
