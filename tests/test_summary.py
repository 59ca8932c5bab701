from decimal import Decimal

from class_finance.summary import (
    GENERAL_EXPENSE,
    GENERAL_INCOME,
    SCHEDULE_BUCKET,
    calculate_balance,
    summarize_by_category,
)
from fakes import make_payment, make_txn


def _mixed_transactions():
    return [
        make_txn(id="i1", kind="income", amount=300, method="truemoney"),
        make_txn(id="i2", kind="income", amount=20, method=None),
        make_txn(id="e1", kind="expense", amount=120, method="cash"),
        make_payment("p1", "A", 150, method="cash"),
        make_payment("p2", "A", 50, method="kplus"),
    ]


def test_balance_counts_schedule_income_in_both_views():
    summary = calculate_balance(_mixed_transactions())
    assert summary.income_txn == Decimal("320")
    assert summary.expense_txn == Decimal("120")
    assert summary.student_income.cash == Decimal("150")
    assert summary.student_income.kplus == Decimal("50")
    assert summary.student_income.truemoney == Decimal("0")
    assert summary.student_income.total == Decimal("200")
    assert summary.method_breakdown.truemoney == Decimal("300")
    assert summary.method_breakdown.cash == Decimal("150")
    assert summary.method_breakdown.total == Decimal("500")
    assert summary.balance == Decimal("400")


def test_balance_is_income_plus_collections_minus_expenses():
    summary = calculate_balance(_mixed_transactions())
    assert summary.balance == summary.income_txn + summary.student_income.total - summary.expense_txn


def test_balance_does_not_drift_on_cents():
    txns = [make_txn(id=str(i), amount="0.1") for i in range(3)] + [make_txn(id="e", kind="expense", amount="0.3")]
    summary = calculate_balance(txns)
    assert summary.income_txn == Decimal("0.30")
    assert summary.balance == Decimal("0.00")


def test_balance_of_empty_snapshot_is_zero():
    summary = calculate_balance([])
    assert summary.balance == Decimal("0")
    assert summary.student_income.total == Decimal("0")


def test_summarize_by_category_buckets_by_month():
    txns = [
        make_txn(id="1", kind="expense", amount=100, category="อุปกรณ์", created_at="2025-11-15T10:00:00Z"),
        make_payment("2", "A", 150, created_at="2025-11-02T08:00:00Z"),
        make_payment("3", "B", 200, schedule_id="sch2", created_at="2025-11-03T08:00:00Z"),
        make_txn(id="4", kind="income", amount=40, created_at="2025-11-20T08:00:00Z"),
        make_txn(id="5", kind="expense", amount=15, created_at="2025-11-21T08:00:00Z"),
        make_txn(id="6", kind="expense", amount=60, category="อุปกรณ์", created_at="2025-10-30T08:00:00Z"),
    ]
    november = summarize_by_category(txns, "2025-11")
    assert [(s.name, s.value) for s in november] == [
        ("อุปกรณ์", Decimal("100")),
        (SCHEDULE_BUCKET, Decimal("350")),
        (GENERAL_INCOME, Decimal("40")),
        (GENERAL_EXPENSE, Decimal("15")),
    ]
    october = summarize_by_category(txns, "2025-10")
    assert [(s.name, s.value) for s in october] == [("อุปกรณ์", Decimal("60"))]


def test_category_values_add_up_to_month_total():
    txns = _mixed_transactions() + [make_txn(id="x", amount=5, created_at="2025-12-01T00:00:00Z")]
    slices = summarize_by_category(txns, "2025-11")
    expected = sum(t.amount for t in txns if t.created_at.startswith("2025-11"))
    assert sum(s.value for s in slices) == expected
    assert summarize_by_category(txns, "2024-01") == []


def test_schedule_payment_without_method_is_left_out_of_totals():
    txns = [make_payment("p1", "A", 100, method="kplus"), make_payment("p2", "B", 40, method=None)]
    summary = calculate_balance(txns)
    assert summary.student_income.kplus == Decimal("100")
    assert summary.student_income.total == Decimal("100")
    assert summary.method_breakdown.total == Decimal("100")
    assert summary.balance == Decimal("100")
