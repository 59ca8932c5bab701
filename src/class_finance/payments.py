"""Recording schedule payments, split across payment methods."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Sequence

from class_finance.models import (
    KIND_INCOME,
    PAYMENT_METHODS,
    SOURCE_SCHEDULE,
    Schedule,
    Transaction,
    normalise_method,
    round_money,
    sum_money,
    to_decimal,
)
from class_finance.reconciliation import PaidMap, aggregate_payments, remaining
from class_finance.state_manager import AppState
from class_finance.supabase_client import SupabaseClient

LOGGER = logging.getLogger(__name__)


class PaymentError(ValueError):
    """Raised when a payment cannot be recorded as entered."""


@dataclass(frozen=True)
class PaymentLine:
    amount: Decimal
    method: str

    @classmethod
    def parse(cls, amount: object, method: str) -> "PaymentLine":
        return cls(amount=round_money(to_decimal(amount)), method=normalise_method(method) or "")


def plan_schedule_payments(
    schedule: Schedule,
    student_ids: Sequence[str],
    lines: Iterable[PaymentLine],
    paid_map: PaidMap,
) -> List[Transaction]:
    """Build one pending transaction per selected student and payment line.

    The entered total may be partial but may not exceed what any selected
    student still owes on the schedule.
    """

    selected = list(dict.fromkeys(student_ids))
    if not selected:
        raise PaymentError("Select at least one student")
    usable = [
        PaymentLine(round_money(line.amount), normalise_method(line.method) or "") for line in lines if line.amount > 0
    ]
    for line in usable:
        if line.method not in PAYMENT_METHODS:
            raise PaymentError(f"Unknown payment method: {line.method!r}")
    total = sum_money(line.amount for line in usable)
    if total <= 0:
        raise PaymentError("Enter an amount to record")

    for student_id in selected:
        if student_id not in schedule.student_ids:
            raise PaymentError(f"Student {student_id} is not part of schedule {schedule.name}")
        owed = remaining(schedule, student_id, paid_map)
        if owed == 0:
            raise PaymentError(f"Student {student_id} has already paid {schedule.name}")
        if total > owed:
            raise PaymentError(f"Entered {total} exceeds the remaining {owed} for student {student_id}")

    return [
        Transaction(
            id="",
            name=schedule.name,
            source=SOURCE_SCHEDULE,
            kind=KIND_INCOME,
            amount=line.amount,
            created_at="",
            method=line.method,
            schedule_id=schedule.id,
            student_id=student_id,
        )
        for student_id in selected
        for line in usable
    ]


def record_schedule_payments(
    client: SupabaseClient,
    state: AppState,
    schedule_id: str,
    student_ids: Sequence[str],
    lines: Iterable[PaymentLine],
) -> AppState:
    """Create the payment transactions remotely, then append them to the snapshot."""

    schedule = state.data.find_schedule(schedule_id)
    if schedule is None:
        raise PaymentError(f"Unknown schedule: {schedule_id}")
    pending = plan_schedule_payments(schedule, student_ids, lines, aggregate_payments(state.data.transactions))
    created = client.transactions.create_many(pending)
    LOGGER.info("Recorded %d payment(s) for schedule %s", len(created), schedule.name)
    return state.add_transactions(tuple(created))
