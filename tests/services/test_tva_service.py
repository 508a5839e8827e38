"""
Tests for TvaService -- VAT declarations from draft to submitted.
"""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.tva import TvaCollected, TvaDeductible
from ledger_kernel.exceptions import (
    ConflictError,
    DeclarationAlreadySubmittedError,
    DeclarationImmutableError,
    DeclarationNotFoundError,
    ImmutabilityViolationError,
    InvalidAmountError,
    InvalidDeclarationError,
)
from ledger_kernel.models.tva_declaration import TvaDeclaration


def _declare(tva_service, actor_id, collected="1000", deductible=("200", "300"), credit="0", **kw):
    kw.setdefault("period_start", date(2024, 1, 1))
    kw.setdefault("period_end", date(2024, 1, 31))
    kw.setdefault("regime", "monthly")
    return tva_service.create_declaration(
        collected=TvaCollected(rate_20=Decimal(collected)),
        deductible=TvaDeductible(
            immobilisations=Decimal(deductible[0]),
            charges=Decimal(deductible[1]),
        ),
        credit_report=Decimal(credit),
        actor_id=actor_id,
        **kw,
    )


class TestCreateDeclaration:

    def test_amount_to_pay(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        assert info.status == "draft"
        assert info.tva_due == Decimal("500.00")
        assert info.tva_to_pay == Decimal("500.00")
        assert info.new_credit_report == Decimal("0.00")

    def test_credit_absorbs_part_of_due(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id, credit="100")
        assert info.tva_to_pay == Decimal("400.00")
        assert info.new_credit_report == Decimal("0.00")

    def test_credit_larger_than_due(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id, collected="500", deductible=("0", "100"), credit="600")
        assert info.tva_due == Decimal("400.00")
        assert info.tva_to_pay == Decimal("0.00")
        assert info.new_credit_report == Decimal("200.00")

    def test_negative_due_becomes_credit(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id, collected="100", deductible=("0", "300"), credit="50")
        assert info.tva_due == Decimal("-200.00")
        assert info.tva_to_pay == Decimal("0.00")
        assert info.new_credit_report == Decimal("250.00")

    def test_stored_results_match_computation(self, tva_service, session, test_actor_id):
        info = _declare(tva_service, test_actor_id, collected="100", deductible=("0", "300"))
        session.expire_all()
        row = session.get(TvaDeclaration, info.id)
        assert row.tva_due == Decimal("-200.00")
        assert row.tva_to_pay == Decimal("0.00")

    def test_all_brackets_summed(self, tva_service, test_actor_id):
        info = tva_service.create_declaration(
            date(2024, 1, 1), date(2024, 3, 31), "quarterly",
            TvaCollected.from_brackets({20: Decimal("200"), 14: Decimal("14"), 10: Decimal("10"), 7: Decimal("7")}),
            TvaDeductible(),
            actor_id=test_actor_id,
        )
        assert info.computation.total_collected == Decimal("231.00")
        assert info.regime == "quarterly"

    def test_period_end_before_start(self, tva_service, test_actor_id):
        with pytest.raises(InvalidDeclarationError):
            _declare(tva_service, test_actor_id, period_start=date(2024, 2, 1), period_end=date(2024, 1, 31))

    def test_unknown_regime(self, tva_service, test_actor_id):
        with pytest.raises(InvalidDeclarationError):
            _declare(tva_service, test_actor_id, regime="yearly")

    def test_negative_credit_report(self, tva_service, test_actor_id):
        with pytest.raises(InvalidAmountError):
            _declare(tva_service, test_actor_id, credit="-1")

    def test_negative_collected(self):
        with pytest.raises(InvalidAmountError):
            TvaCollected(rate_20=Decimal("-5"))


class TestUpdateDeclaration:

    def test_update_recomputes(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        updated = tva_service.update_declaration(
            info.id,
            deductible=TvaDeductible(charges=Decimal("900")),
            notes="facture fournisseur oubliée",
            actor_id=test_actor_id,
        )
        assert updated.tva_due == Decimal("100.00")
        assert updated.tva_collected_20 == Decimal("1000.00")
        assert updated.notes == "facture fournisseur oubliée"

    def test_update_credit_only(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        updated = tva_service.update_declaration(info.id, credit_report=Decimal("50"), actor_id=test_actor_id)
        assert updated.tva_to_pay == Decimal("450.00")

    def test_update_unknown(self, tva_service, test_actor_id):
        with pytest.raises(DeclarationNotFoundError):
            tva_service.update_declaration(uuid4(), notes="x", actor_id=test_actor_id)


class TestSubmit:

    def test_submit_stamps_time(self, tva_service, deterministic_clock, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        submitted = tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        assert submitted.is_submitted
        assert submitted.submitted_at == deterministic_clock.now()

    def test_submit_twice_is_conflict(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        with pytest.raises(DeclarationAlreadySubmittedError) as exc_info:
            tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        assert isinstance(exc_info.value, ConflictError)

    def test_submitted_cannot_be_updated(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        with pytest.raises(DeclarationImmutableError):
            tva_service.update_declaration(info.id, notes="late", actor_id=test_actor_id)

    def test_submitted_cannot_be_deleted(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        with pytest.raises(DeclarationImmutableError) as exc_info:
            tva_service.delete_declaration(info.id, actor_id=test_actor_id)
        assert exc_info.value.operation == "delete"

    def test_direct_edit_of_submitted_blocked(self, tva_service, session, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        tva_service.submit_declaration(info.id, actor_id=test_actor_id)
        with pytest.raises(ImmutabilityViolationError):
            with session.begin_nested():
                session.get(TvaDeclaration, info.id).tva_to_pay = Decimal("0")
                session.flush()

    def test_submit_unknown(self, tva_service, test_actor_id):
        with pytest.raises(DeclarationNotFoundError):
            tva_service.submit_declaration(uuid4(), actor_id=test_actor_id)


class TestQueries:

    def test_delete_draft(self, tva_service, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        tva_service.delete_declaration(info.id, actor_id=test_actor_id)
        with pytest.raises(DeclarationNotFoundError):
            tva_service.get_declaration(info.id)

    def test_list_latest_period_first(self, tva_service, test_actor_id):
        starts = [date(2024, 1, 1), date(2024, 3, 1), date(2024, 2, 1)]
        for start in starts:
            _declare(tva_service, test_actor_id, period_start=start, period_end=start + timedelta(days=27))
        listed = tva_service.list_declarations()
        assert [d.period_start for d in listed] == sorted(starts, reverse=True)

    def test_carry_forward_chain(self, tva_service, test_actor_id):
        january = _declare(tva_service, test_actor_id, collected="100", deductible=("0", "300"))
        credit = tva_service.carry_forward_from(january.id)
        assert credit == Decimal("200.00")

        february = _declare(
            tva_service, test_actor_id, collected="500", deductible=("0", "100"), credit=str(credit),
            period_start=date(2024, 2, 1), period_end=date(2024, 2, 29),
        )
        assert february.tva_to_pay == Decimal("200.00")
        assert tva_service.carry_forward_from(february.id) == Decimal("0.00")

    def test_declaration_id_in_creation_log(self, tva_service, captured_logs, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        created = [r for r in captured_logs() if r["message"] == "tva_declaration_created"]
        assert created[0]["declaration_id"] == str(info.id)
        assert created[0]["tva_to_pay"] == "500.00"
        assert created[0]["actor_id"] == str(test_actor_id)

    def test_submission_logs_declaration_and_actor(self, tva_service, captured_logs, test_actor_id):
        info = _declare(tva_service, test_actor_id)
        submitter = uuid4()
        tva_service.submit_declaration(info.id, actor_id=submitter)
        with pytest.raises(DeclarationAlreadySubmittedError):
            tva_service.submit_declaration(info.id, actor_id=submitter)

        logs = captured_logs()
        submitted = [r for r in logs if r["message"] == "tva_declaration_submitted"]
        rejected = [r for r in logs if r["message"] == "tva_declaration_resubmit_rejected"]
        for record in (submitted[0], rejected[0]):
            assert record["declaration_id"] == str(info.id)
            assert record["actor_id"] == str(submitter)

    def test_same_period_may_be_declared_twice(self, tva_service, test_actor_id):
        first = _declare(tva_service, test_actor_id)
        corrected = _declare(tva_service, test_actor_id, collected="1200", notes="Déclaration rectificative")
        assert first.id != corrected.id
        assert first.period_start == corrected.period_start
        assert len(tva_service.list_declarations()) == 2
