"""
Property-based tests (hypothesis) for the ledger arithmetic.

Properties:
- line VAT is base * rate / 100 to the centime, never negative
- compute_tva: tva_to_pay >= 0 and the credit carried forward balances the
  period (to_pay - new_credit == due - credit_report)
- the running balance of a grand livre ends on debit - credit totals
- a trial balance built from balanced entries is balanced, and so is the bilan
- any balanced set of lines written through EntryWriter is accepted
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.ledger_fold import (
    AccountKey,
    LedgerLine,
    build_account_ledger,
    build_trial_balance,
)
from ledger_kernel.domain.tva import (
    TVA_RATES,
    TvaCollected,
    TvaDeductible,
    compute_tva,
    line_tva_amount,
)
from ledger_kernel.selectors.statement_selector import balance_sheet_from

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("99999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
positive_amounts = amounts.filter(lambda a: a > 0)

ACCOUNTS = [
    AccountKey(uuid4(), code, code, int(code[0]))
    for code in ("1111", "3421", "4411", "4455", "5141", "6122", "7124")
]


@given(base=amounts, rate=st.sampled_from(sorted(TVA_RATES)))
def test_line_vat_rounds_to_centime(base, rate):
    vat = line_tva_amount(base, rate)
    assert vat >= 0
    assert vat == vat.quantize(Decimal("0.01"))
    assert abs(vat - base * rate / 100) <= Decimal("0.005")


@given(
    collected=st.lists(amounts, min_size=4, max_size=4),
    deductible=st.lists(amounts, min_size=2, max_size=2),
    credit=amounts,
)
def test_declaration_closes(collected, deductible, credit):
    result = compute_tva(
        TvaCollected(*collected),
        TvaDeductible(*deductible),
        credit,
    )
    assert result.tva_to_pay >= 0
    assert result.new_credit_report >= 0
    assert result.tva_to_pay - result.new_credit_report == result.tva_due - credit
    # Never both something to pay and a credit to carry
    assert result.tva_to_pay == 0 or result.new_credit_report == 0


@given(st.lists(st.tuples(amounts, amounts), max_size=30))
def test_running_balance_ends_on_totals(pairs):
    lines = [
        LedgerLine(uuid4(), date(2024, 1, 1), f"P-{i}", "", debit, credit)
        for i, (debit, credit) in enumerate(pairs)
    ]
    ledger = build_account_ledger(uuid4(), "5141", "Banques", lines)
    expected = sum((d for d, _ in pairs), Decimal("0")) - sum((c for _, c in pairs), Decimal("0"))
    assert len(ledger.rows) == len(pairs)
    assert ledger.closing_balance == expected
    if ledger.rows:
        assert ledger.rows[-1].running_balance == expected


@st.composite
def balanced_entries(draw):
    """Entries as [(account, debit, credit)], each summing to zero."""
    entries = []
    for _ in range(draw(st.integers(min_value=1, max_value=8))):
        amount = draw(positive_amounts)
        debit_account, credit_account = draw(
            st.lists(st.sampled_from(ACCOUNTS), min_size=2, max_size=2, unique=True)
        )
        entries.append([(debit_account, amount, Decimal("0")), (credit_account, Decimal("0"), amount)])
    return entries


@given(balanced_entries())
def test_trial_balance_and_bilan_close(entries):
    trial_balance = build_trial_balance(line for entry in entries for line in entry)
    assert trial_balance.is_balanced
    assert trial_balance.total_solde_debit == trial_balance.total_solde_credit
    assert balance_sheet_from(trial_balance).is_balanced


@settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(
    line_amounts=st.lists(positive_amounts, min_size=1, max_size=5),
)
def test_balanced_entries_accepted(session, ledger_setup, entry_writer, specs, test_actor_id, line_amounts):
    accounts, journals, fy = ledger_setup
    total = sum(line_amounts, Decimal("0"))
    lines = [("6122", str(a), "0") for a in line_amounts] + [("4411", "0", str(total))]

    savepoint = session.begin_nested()
    try:
        info = entry_writer.create_entry(
            f"ACH-{uuid4().hex[:12]}", date(2024, 6, 1), journals["ACH"].id,
            specs(lines), actor_id=test_actor_id,
        )
        assert info.total_debit == info.total_credit == total
        assert len(info.lines) == len(line_amounts) + 1
    finally:
        savepoint.rollback()
