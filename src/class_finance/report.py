"""Tabular and text renderings of a snapshot for the CLI and Sheets export."""
from __future__ import annotations

from decimal import Decimal
from typing import List

from class_finance.models import DataBundle
from class_finance.reconciliation import aggregate_payments, paid_amount, payment_state, remaining, schedule_progress
from class_finance.summary import calculate_balance, summarize_by_category


def transaction_rows(bundle: DataBundle) -> List[List[str]]:
    schedules = {s.id: s.name for s in bundle.schedules}
    students = {s.id: s.full_name for s in bundle.students}
    rows = []
    for txn in sorted(bundle.transactions, key=lambda t: t.created_at, reverse=True):
        rows.append(
            [
                txn.id,
                txn.created_at,
                txn.name,
                txn.source,
                txn.kind,
                _money(txn.amount),
                txn.method or "",
                txn.category or "",
                schedules.get(txn.schedule_id or "", ""),
                students.get(txn.student_id or "", ""),
            ]
        )
    return rows


def payment_status_rows(bundle: DataBundle) -> List[List[str]]:
    """One row per (schedule, enrolled student), students ordered by number."""

    paid_map = aggregate_payments(bundle.transactions)
    rows = []
    for schedule in bundle.schedules:
        enrolled = [s for s in bundle.students if s.id in schedule.student_ids]
        for student in sorted(enrolled, key=lambda s: s.number):
            rows.append(
                [
                    schedule.name,
                    str(student.number),
                    student.full_name,
                    _money(paid_amount(schedule, student.id, paid_map)),
                    _money(remaining(schedule, student.id, paid_map)),
                    payment_state(schedule, student.id, paid_map),
                ]
            )
    return rows


def format_dashboard(bundle: DataBundle, month: str) -> List[str]:
    """Return human-friendly dashboard lines for ``month`` (``YYYY-MM``)."""

    balance = calculate_balance(bundle.transactions)
    lines = [
        f"balance {_money(balance.balance)}",
        f"income (transactions) {_money(balance.income_txn)}",
        f"expenses (transactions) {_money(balance.expense_txn)}",
        f"collected from students {_money(balance.student_income.total)}",
        "by method: kplus {} / cash {} / truemoney {}".format(
            _money(balance.method_breakdown.kplus),
            _money(balance.method_breakdown.cash),
            _money(balance.method_breakdown.truemoney),
        ),
    ]
    slices = summarize_by_category(bundle.transactions, month)
    if slices:
        lines.append(f"categories for {month}:")
        lines.extend(f"  {item.name}: {_money(item.value)}" for item in slices)
    else:
        lines.append(f"no transactions in {month}")
    for schedule in bundle.schedules:
        progress = schedule_progress(bundle, schedule.id)
        if progress is None:
            continue
        lines.append(
            f"schedule {schedule.name}: {progress.paid_students} paid, {progress.unpaid_students} unpaid, "
            f"collected {_money(progress.total_collected)} of {_money(progress.target_amount)}"
        )
    return lines


def _money(value: Decimal) -> str:
    return f"{value:.2f}"
