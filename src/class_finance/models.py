"""Snapshot records for students, schedules, categories and transactions."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Optional, Tuple

CENT = Decimal("0.01")

SOURCE_TRANSACTION = "transaction"
SOURCE_SCHEDULE = "schedule"
KIND_INCOME = "income"
KIND_EXPENSE = "expense"
PAYMENT_METHODS = ("kplus", "cash", "truemoney")

# Rows written before the K PLUS rename still say "bank".
_METHOD_ALIASES = {"bank": "kplus"}


@dataclass(frozen=True)
class Student:
    id: str
    number: int
    prefix: str
    first_name: str
    last_name: str
    nick_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.prefix}{self.first_name} {self.last_name}"

    @classmethod
    def from_row(cls, row: Dict) -> "Student":
        return cls(
            id=str(row["id"]),
            number=int(row.get("number", 0)),
            prefix=row.get("prefix", "") or "",
            first_name=row.get("first_name", "") or "",
            last_name=row.get("last_name", "") or "",
            nick_name=row.get("nick_name") or None,
            avatar_url=row.get("avatar_url") or None,
        )

    def to_row(self) -> Dict:
        return _compact(
            {
                "prefix": self.prefix,
                "first_name": self.first_name,
                "last_name": self.last_name,
                "nick_name": self.nick_name,
                "number": self.number,
                "avatar_url": self.avatar_url,
            }
        )


@dataclass(frozen=True)
class Schedule:
    id: str
    name: str
    start_date: str
    amount_per_item: Decimal
    student_ids: Tuple[str, ...] = ()
    end_date: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Schedule":
        return cls(
            id=str(row["id"]),
            name=row.get("name", ""),
            start_date=row.get("start_date", ""),
            amount_per_item=to_decimal(row.get("amount_per_item")),
            student_ids=tuple(str(sid) for sid in row.get("student_ids") or ()),
            end_date=row.get("end_date") or None,
            details=row.get("description") or None,
        )

    def to_row(self) -> Dict:
        return _compact(
            {
                "name": self.name,
                "amount_per_item": money_to_wire(self.amount_per_item),
                "start_date": self.start_date,
                "end_date": self.end_date,
                "description": self.details,
                "student_ids": list(self.student_ids),
            }
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Category":
        return cls(id=str(row["id"]), name=row.get("name", ""), icon=row.get("icon") or None)

    def to_row(self) -> Dict:
        return _compact({"name": self.name, "icon": self.icon})


@dataclass(frozen=True)
class Transaction:
    """A single money movement, ad hoc or paid against a schedule."""

    id: str
    name: str
    source: str
    kind: str
    amount: Decimal
    created_at: str
    method: Optional[str] = None
    category: Optional[str] = None
    schedule_id: Optional[str] = None
    student_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "Transaction":
        """Create a :class:`Transaction` from a Supabase ``transactions`` row."""

        return cls(
            id=str(row["id"]),
            name=row.get("name", ""),
            source=row.get("source", SOURCE_TRANSACTION),
            kind=row.get("kind", KIND_INCOME),
            amount=to_decimal(row.get("amount")),
            created_at=row.get("created_at", "") or "",
            method=normalise_method(row.get("method")),
            category=row.get("category") or None,
            schedule_id=_optional_id(row.get("schedule_id")),
            student_id=_optional_id(row.get("student_id")),
        )

    def to_row(self) -> Dict:
        """Return the insert/update payload expected by the ``transactions`` table."""

        return _compact(
            {
                "name": self.name,
                "kind": self.kind,
                "amount": money_to_wire(self.amount),
                "method": self.method,
                "category": self.category,
                "source": self.source,
                "schedule_id": self.schedule_id,
                "student_id": self.student_id,
            }
        )

    @property
    def is_schedule_payment(self) -> bool:
        return self.source == SOURCE_SCHEDULE


@dataclass(frozen=True)
class DataBundle:
    students: Tuple[Student, ...] = ()
    schedules: Tuple[Schedule, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    categories: Tuple[Category, ...] = ()

    def find_schedule(self, schedule_id: str) -> Optional[Schedule]:
        return next((s for s in self.schedules if s.id == schedule_id), None)

    def find_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def to_dict(self) -> Dict:
        return {
            "students": [{"id": s.id, **s.to_row()} for s in self.students],
            "schedules": [{"id": s.id, **s.to_row()} for s in self.schedules],
            "transactions": [
                {"id": t.id, "created_at": t.created_at, **t.to_row()} for t in self.transactions
            ],
            "categories": [{"id": c.id, **c.to_row()} for c in self.categories],
        }

    @classmethod
    def from_dict(cls, payload: Dict) -> "DataBundle":
        return cls(
            students=tuple(Student.from_row(r) for r in payload.get("students", [])),
            schedules=tuple(Schedule.from_row(r) for r in payload.get("schedules", [])),
            transactions=tuple(Transaction.from_row(r) for r in payload.get("transactions", [])),
            categories=tuple(Category.from_row(r) for r in payload.get("categories", [])),
        )


def normalise_method(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    method = str(raw).strip().lower()
    return _METHOD_ALIASES.get(method, method)


def to_decimal(value: object) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_to_wire(value: Decimal) -> float:
    return float(round_money(value))


def sum_money(amounts: Iterable[Decimal]) -> Decimal:
    return round_money(sum(amounts, Decimal("0")))


def _optional_id(value: object) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _compact(row: Dict) -> Dict:
    return {key: value for key, value in row.items() if value is not None}
