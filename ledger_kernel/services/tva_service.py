"""
TvaService -- periodic VAT declarations.

Responsibility:
    Stores declarations with their collected/deductible inputs, computes
    tva_due and tva_to_pay once through domain/tva.compute_tva, and moves
    them from DRAFT to SUBMITTED.

Invariants enforced:
    - period_start <= period_end; regime is monthly or quarterly.
    - Amounts are non-negative two-digit Decimals.
    - Stored tva_due / tva_to_pay always match compute_tva on the stored
      inputs.
    - Submitted declarations are frozen (service check here, ORM listener
      in db/immutability.py).

Failure modes:
    - InvalidDeclarationError, InvalidAmountError (validation).
    - DeclarationNotFoundError.
    - DeclarationAlreadySubmittedError on re-submission.
    - DeclarationImmutableError on update/delete of a submitted declaration.

Non-goals:
    - Does NOT derive collected/deductible amounts from ledger lines.
    - Does NOT carry the credit forward automatically: the caller passes
      credit_report explicitly (see carry_forward_from).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import ZERO, to_non_negative_money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import TvaDeclarationInfo
from ledger_kernel.domain.tva import TvaCollected, TvaDeductible, compute_tva
from ledger_kernel.exceptions import (
    DeclarationAlreadySubmittedError,
    DeclarationImmutableError,
    DeclarationNotFoundError,
    InvalidDeclarationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.tva_declaration import (
    DeclarationStatus,
    TvaDeclaration,
    TvaRegime,
)
from ledger_kernel.services.base import BaseService

logger = get_logger("services.tva")

_REGIMES = frozenset(r.value for r in TvaRegime)


def _inputs(model: TvaDeclaration) -> tuple[TvaCollected, TvaDeductible, Decimal]:
    collected = TvaCollected(
        rate_20=model.tva_collected_20,
        rate_14=model.tva_collected_14,
        rate_10=model.tva_collected_10,
        rate_7=model.tva_collected_7,
    )
    deductible = TvaDeductible(
        immobilisations=model.tva_deductible_immobilisations,
        charges=model.tva_deductible_charges,
    )
    return collected, deductible, model.credit_report


def _info(model: TvaDeclaration) -> TvaDeclarationInfo:
    return TvaDeclarationInfo.from_model(model, compute_tva(*_inputs(model)))


class TvaService(BaseService[TvaDeclaration]):

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_declaration(
        self,
        period_start: date,
        period_end: date,
        regime: str,
        collected: TvaCollected,
        deductible: TvaDeductible,
        credit_report: Decimal = ZERO,
        notes: str | None = None,
        *,
        actor_id: UUID,
    ) -> TvaDeclarationInfo:
        """
        Record a DRAFT declaration.

        Example:
            collected 20% = 1000, deductible 200 + 300, credit_report 0
            -> tva_due 500, tva_to_pay 500, new_credit_report 0.
        """
        regime = self._check_period(period_start, period_end, regime)
        credit_report = to_non_negative_money(credit_report)
        computation = compute_tva(collected, deductible, credit_report)

        declaration = TvaDeclaration(
            period_start=period_start,
            period_end=period_end,
            regime=regime,
            credit_report=credit_report,
            notes=notes,
            status=DeclarationStatus.DRAFT.value,
            created_by_id=actor_id,
        )
        self._apply(declaration, collected, deductible, computation)
        self.session.add(declaration)
        self.session.flush()

        with LogContext.bind(actor_id=actor_id, declaration_id=declaration.id):
            logger.info(
                "tva_declaration_created",
                extra={
                    "period_start": str(period_start),
                    "period_end": str(period_end),
                    "regime": regime,
                    "tva_due": str(computation.tva_due),
                    "tva_to_pay": str(computation.tva_to_pay),
                },
            )
        return TvaDeclarationInfo.from_model(declaration, computation)

    def update_declaration(
        self,
        declaration_id: UUID,
        *,
        collected: TvaCollected | None = None,
        deductible: TvaDeductible | None = None,
        credit_report: Decimal | None = None,
        period_start: date | None = None,
        period_end: date | None = None,
        regime: str | None = None,
        notes: str | None = None,
        actor_id: UUID,
    ) -> TvaDeclarationInfo:
        """Edit a DRAFT declaration; stored results are recomputed."""
        declaration = self._get_or_raise(declaration_id)
        if declaration.is_submitted:
            raise DeclarationImmutableError(str(declaration.id), "update")

        period_start = period_start or declaration.period_start
        period_end = period_end or declaration.period_end
        regime = self._check_period(period_start, period_end, regime or declaration.regime)

        old_collected, old_deductible, old_credit = _inputs(declaration)
        collected = old_collected if collected is None else collected
        deductible = old_deductible if deductible is None else deductible
        credit_report = (
            old_credit if credit_report is None else to_non_negative_money(credit_report)
        )
        computation = compute_tva(collected, deductible, credit_report)

        declaration.period_start = period_start
        declaration.period_end = period_end
        declaration.regime = regime
        declaration.credit_report = credit_report
        if notes is not None:
            declaration.notes = notes
        self._apply(declaration, collected, deductible, computation)
        declaration.updated_by_id = actor_id
        self.session.flush()

        with LogContext.bind(actor_id=actor_id, declaration_id=declaration.id):
            logger.info(
                "tva_declaration_updated",
                extra={
                    "tva_due": str(computation.tva_due),
                    "tva_to_pay": str(computation.tva_to_pay),
                },
            )
        return TvaDeclarationInfo.from_model(declaration, computation)

    def submit_declaration(self, declaration_id: UUID, *, actor_id: UUID) -> TvaDeclarationInfo:
        with LogContext.bind(actor_id=actor_id, declaration_id=declaration_id):
            declaration = self.session.execute(
                select(TvaDeclaration)
                .where(TvaDeclaration.id == declaration_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if declaration is None:
                raise DeclarationNotFoundError(str(declaration_id))
            if declaration.is_submitted:
                logger.warning("tva_declaration_resubmit_rejected")
                raise DeclarationAlreadySubmittedError(str(declaration.id))

            declaration.status = DeclarationStatus.SUBMITTED.value
            declaration.submitted_at = self._clock.now()
            declaration.submitted_by_id = actor_id
            declaration.updated_by_id = actor_id
            self.session.flush()

            logger.info(
                "tva_declaration_submitted",
                extra={"tva_to_pay": str(declaration.tva_to_pay)},
            )
            return _info(declaration)

    def delete_declaration(self, declaration_id: UUID, *, actor_id: UUID) -> None:
        with LogContext.bind(actor_id=actor_id, declaration_id=declaration_id):
            declaration = self._get_or_raise(declaration_id)
            if declaration.is_submitted:
                raise DeclarationImmutableError(str(declaration.id), "delete")
            self.session.delete(declaration)
            self.session.flush()
            logger.info("tva_declaration_deleted")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_declaration(self, declaration_id: UUID) -> TvaDeclarationInfo:
        return _info(self._get_or_raise(declaration_id))

    def list_declarations(self) -> list[TvaDeclarationInfo]:
        """All declarations, latest period first."""
        stmt = select(TvaDeclaration).order_by(
            TvaDeclaration.period_start.desc(),
            TvaDeclaration.created_at.desc(),
        )
        return [_info(d) for d in self.session.scalars(stmt)]

    def carry_forward_from(self, declaration_id: UUID) -> Decimal:
        """
        Credit a declaration leaves for the next period.

        A suggestion only: pass it as ``credit_report`` to the next
        create_declaration call.
        """
        return compute_tva(*_inputs(self._get_or_raise(declaration_id))).new_credit_report

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_or_raise(self, declaration_id: UUID) -> TvaDeclaration:
        declaration = self.session.get(TvaDeclaration, declaration_id)
        if declaration is None:
            raise DeclarationNotFoundError(str(declaration_id))
        return declaration

    @staticmethod
    def _check_period(period_start: date, period_end: date, regime) -> str:
        if period_start > period_end:
            raise InvalidDeclarationError(
                f"period_start ({period_start}) is after period_end ({period_end})"
            )
        regime = getattr(regime, "value", regime)
        if regime not in _REGIMES:
            raise InvalidDeclarationError(f"unknown regime {regime!r}")
        return regime

    @staticmethod
    def _apply(declaration, collected, deductible, computation) -> None:
        declaration.tva_collected_20 = collected.rate_20
        declaration.tva_collected_14 = collected.rate_14
        declaration.tva_collected_10 = collected.rate_10
        declaration.tva_collected_7 = collected.rate_7
        declaration.tva_deductible_immobilisations = deductible.immobilisations
        declaration.tva_deductible_charges = deductible.charges
        declaration.tva_due = computation.tva_due
        declaration.tva_to_pay = computation.tva_to_pay
