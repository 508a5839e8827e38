"""
Module: ledger_kernel.selectors.base
Responsibility: Abstract base class for the read-only query side.  Selectors
    read entries and lines and hand them to the pure folds in domain/; they
    never write.
Architecture position: Kernel > Selectors.  May import from models/ and
    domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only: no session.add(), delete(), flush() or commit().
    - Results are frozen DTOs or fold results, never ORM instances.
    - The caller owns the session and its transaction scope.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Non-goals:
        BaseSelector defines no queries; subclasses implement entry, ledger
        and statement queries.
    """

    def __init__(self, session: Session):
        self.session = session
