"""Reconciliation of schedule payments against what each student owes."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from class_finance.models import DataBundle, Schedule, Transaction, round_money, sum_money

PaidMap = Dict[Tuple[str, str], Decimal]

STATE_PAID = "paid"
STATE_PARTIAL = "partial"
STATE_UNPAID = "unpaid"

_ZERO = Decimal("0")


@dataclass(frozen=True)
class PaymentStatus:
    paid_student_ids: FrozenSet[str]
    unpaid_student_ids: FrozenSet[str]

    @property
    def paid(self) -> int:
        return len(self.paid_student_ids)

    @property
    def unpaid(self) -> int:
        return len(self.unpaid_student_ids)


@dataclass(frozen=True)
class ScheduleProgress:
    schedule_id: str
    total_students: int
    paid_students: int
    unpaid_students: int
    total_collected: Decimal
    target_amount: Decimal

    @property
    def is_complete(self) -> bool:
        return self.total_students > 0 and self.unpaid_students == 0


@dataclass(frozen=True)
class UnpaidItem:
    schedule_id: str
    name: str
    remaining: Decimal
    due_date: Optional[str]


@dataclass(frozen=True)
class StudentPaymentSummary:
    student_id: str
    schedule_ids: Tuple[str, ...]
    unpaid_items: Tuple[UnpaidItem, ...]
    total_paid: Decimal
    total_unpaid: Decimal


def aggregate_payments(transactions: Iterable[Transaction]) -> PaidMap:
    """Sum schedule payments per (schedule_id, student_id) pair.

    Pairs without a contributing transaction are absent, which callers read as
    a paid amount of zero. Schedule transactions missing either id are skipped;
    :func:`malformed_schedule_payments` lists them.
    """

    totals: Dict[Tuple[str, str], Decimal] = defaultdict(Decimal)
    for txn in transactions:
        if not txn.is_schedule_payment:
            continue
        if not txn.schedule_id or not txn.student_id:
            continue
        totals[(txn.schedule_id, txn.student_id)] += txn.amount
    return dict(totals)


def malformed_schedule_payments(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [
        txn
        for txn in transactions
        if txn.is_schedule_payment and (not txn.schedule_id or not txn.student_id)
    ]


def paid_amount(schedule: Schedule, student_id: str, paid_map: PaidMap) -> Decimal:
    return paid_map.get((schedule.id, student_id), _ZERO)


def classify(schedule: Schedule, paid_map: PaidMap) -> PaymentStatus:
    """Split the schedule's students into paid and unpaid.

    A partial payment still counts as unpaid.
    """

    enrolled = frozenset(schedule.student_ids)
    paid = frozenset(
        student_id
        for student_id in enrolled
        if paid_amount(schedule, student_id, paid_map) >= schedule.amount_per_item
    )
    return PaymentStatus(paid_student_ids=paid, unpaid_student_ids=enrolled - paid)


def remaining(schedule: Schedule, student_id: str, paid_map: PaidMap) -> Decimal:
    owed = schedule.amount_per_item - paid_amount(schedule, student_id, paid_map)
    return round_money(max(_ZERO, owed))


def payment_state(schedule: Schedule, student_id: str, paid_map: PaidMap) -> str:
    paid = paid_amount(schedule, student_id, paid_map)
    if paid >= schedule.amount_per_item:
        return STATE_PAID
    if paid > 0:
        return STATE_PARTIAL
    return STATE_UNPAID


def count_payment_status(bundle: DataBundle, schedule_id: str) -> Tuple[int, int]:
    schedule = bundle.find_schedule(schedule_id)
    if schedule is None:
        return (0, 0)
    status = classify(schedule, aggregate_payments(bundle.transactions))
    return (status.paid, status.unpaid)


def schedule_progress(bundle: DataBundle, schedule_id: str) -> Optional[ScheduleProgress]:
    schedule = bundle.find_schedule(schedule_id)
    if schedule is None:
        return None
    status = classify(schedule, aggregate_payments(bundle.transactions))
    collected = sum_money(
        txn.amount
        for txn in bundle.transactions
        if txn.is_schedule_payment and txn.schedule_id == schedule.id
    )
    total_students = len(set(schedule.student_ids))
    return ScheduleProgress(
        schedule_id=schedule.id,
        total_students=total_students,
        paid_students=status.paid,
        unpaid_students=status.unpaid,
        total_collected=collected,
        target_amount=round_money(schedule.amount_per_item * total_students),
    )


def student_payment_summary(bundle: DataBundle, student_id: str) -> StudentPaymentSummary:
    """Summarise what one student has paid and still owes across schedules.

    ``total_paid`` clamps each schedule at its ``amount_per_item`` so an
    overpayment on one schedule does not hide a debt on another.
    """

    paid_map = aggregate_payments(bundle.transactions)
    schedules = [s for s in bundle.schedules if student_id in s.student_ids]

    unpaid_items: List[UnpaidItem] = []
    total_paid = _ZERO
    for schedule in schedules:
        paid = paid_amount(schedule, student_id, paid_map)
        total_paid += min(schedule.amount_per_item, paid)
        if paid < schedule.amount_per_item:
            unpaid_items.append(
                UnpaidItem(
                    schedule_id=schedule.id,
                    name=schedule.name,
                    remaining=remaining(schedule, student_id, paid_map),
                    due_date=schedule.end_date,
                )
            )

    return StudentPaymentSummary(
        student_id=student_id,
        schedule_ids=tuple(s.id for s in schedules),
        unpaid_items=tuple(unpaid_items),
        total_paid=round_money(total_paid),
        total_unpaid=sum_money(item.remaining for item in unpaid_items),
    )
