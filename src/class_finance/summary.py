"""Dashboard figures: balance, payment-method breakdowns and category slices."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from class_finance.models import (
    KIND_EXPENSE,
    KIND_INCOME,
    PAYMENT_METHODS,
    SOURCE_SCHEDULE,
    SOURCE_TRANSACTION,
    Transaction,
    round_money,
)

SCHEDULE_BUCKET = "การเก็บเงินจากกำหนดการ"
GENERAL_INCOME = "รายรับทั่วไป"
GENERAL_EXPENSE = "รายจ่ายทั่วไป"


@dataclass(frozen=True)
class MethodTotals:
    kplus: Decimal = Decimal("0.00")
    cash: Decimal = Decimal("0.00")
    truemoney: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")


@dataclass(frozen=True)
class BalanceSummary:
    balance: Decimal
    income_txn: Decimal
    expense_txn: Decimal
    student_income: MethodTotals
    method_breakdown: MethodTotals


@dataclass(frozen=True)
class CategorySlice:
    name: str
    value: Decimal


def calculate_balance(transactions: Iterable[Transaction]) -> BalanceSummary:
    """Compute the headline balance and the two per-method views.

    Schedule payments land in ``student_income`` and again in
    ``method_breakdown``, which also holds ad hoc income. Schedule income
    without a known method counts nowhere, not even in the balance. Expenses are not split by method.
    """

    income_txn = Decimal("0")
    expense_txn = Decimal("0")
    combined: Dict[str, Decimal] = {method: Decimal("0") for method in PAYMENT_METHODS}
    collected: Dict[str, Decimal] = {method: Decimal("0") for method in PAYMENT_METHODS}

    for txn in transactions:
        if txn.source == SOURCE_TRANSACTION:
            if txn.kind == KIND_INCOME:
                income_txn += txn.amount
                if txn.method in combined:
                    combined[txn.method] += txn.amount
            elif txn.kind == KIND_EXPENSE:
                expense_txn += txn.amount
        elif txn.source == SOURCE_SCHEDULE and txn.kind == KIND_INCOME:
            if txn.method in collected:
                collected[txn.method] += txn.amount
                combined[txn.method] += txn.amount

    income_txn = round_money(income_txn)
    expense_txn = round_money(expense_txn)
    student_income = _method_totals(collected, total=sum(collected.values(), Decimal("0")))
    return BalanceSummary(
        balance=income_txn + student_income.total - expense_txn,
        income_txn=income_txn,
        expense_txn=expense_txn,
        student_income=student_income,
        method_breakdown=_method_totals(combined, total=sum(combined.values(), Decimal("0"))),
    )


def summarize_by_category(transactions: Iterable[Transaction], month: str) -> List[CategorySlice]:
    """Bucket the month's transactions for the category chart.

    ``month`` is ``YYYY-MM`` and is matched as a prefix of ``created_at``.
    Buckets keep the order in which they first appear.
    """

    buckets: Dict[str, Decimal] = {}
    for txn in transactions:
        if not txn.created_at.startswith(month):
            continue
        if txn.source == SOURCE_SCHEDULE:
            name = SCHEDULE_BUCKET
        else:
            name = txn.category or (GENERAL_INCOME if txn.kind == KIND_INCOME else GENERAL_EXPENSE)
        buckets[name] = buckets.get(name, Decimal("0")) + txn.amount
    return [CategorySlice(name=name, value=round_money(value)) for name, value in buckets.items()]


def _method_totals(values: Dict[str, Decimal], *, total: Decimal) -> MethodTotals:
    return MethodTotals(
        kplus=round_money(values["kplus"]),
        cash=round_money(values["cash"]),
        truemoney=round_money(values["truemoney"]),
        total=round_money(total),
    )
