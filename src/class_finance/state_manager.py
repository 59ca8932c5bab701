"""Application state snapshots and their on-disk cache."""
from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple, TypeVar

from class_finance.models import Category, DataBundle, Schedule, Student, Transaction

EntityT = TypeVar("EntityT", Student, Schedule, Transaction, Category)


@dataclass(frozen=True)
class AppState:
    """The current snapshot plus hydration flags.

    Every update returns a new :class:`AppState`; bundles are never mutated.
    """

    data: DataBundle = field(default_factory=DataBundle)
    is_hydrated: bool = False
    hydration_error: Optional[str] = None

    def with_data(self, bundle: DataBundle) -> "AppState":
        return replace(self, data=bundle, hydration_error=None)

    def mark_hydrated(self) -> "AppState":
        return replace(self, is_hydrated=True)

    def with_error(self, message: Optional[str]) -> "AppState":
        return replace(self, hydration_error=message)

    def add_student(self, student: Student) -> "AppState":
        return self._set(students=self.data.students + (student,))

    def update_student(self, student_id: str, **changes) -> "AppState":
        return self._set(students=_updated(self.data.students, student_id, changes))

    def delete_student(self, student_id: str) -> "AppState":
        return self._set(students=_without(self.data.students, student_id))

    def add_schedule(self, schedule: Schedule) -> "AppState":
        return self._set(schedules=self.data.schedules + (schedule,))

    def update_schedule(self, schedule_id: str, **changes) -> "AppState":
        return self._set(schedules=_updated(self.data.schedules, schedule_id, changes))

    def delete_schedule(self, schedule_id: str) -> "AppState":
        return self._set(schedules=_without(self.data.schedules, schedule_id))

    def add_transaction(self, transaction: Transaction) -> "AppState":
        return self._set(transactions=self.data.transactions + (transaction,))

    def add_transactions(self, transactions: Tuple[Transaction, ...]) -> "AppState":
        return self._set(transactions=self.data.transactions + tuple(transactions))

    def update_transaction(self, transaction_id: str, **changes) -> "AppState":
        return self._set(transactions=_updated(self.data.transactions, transaction_id, changes))

    def delete_transaction(self, transaction_id: str) -> "AppState":
        return self._set(transactions=_without(self.data.transactions, transaction_id))

    def add_category(self, category: Category) -> "AppState":
        return self._set(categories=self.data.categories + (category,))

    def update_category(self, category_id: str, **changes) -> "AppState":
        return self._set(categories=_updated(self.data.categories, category_id, changes))

    def delete_category(self, category_id: str) -> "AppState":
        return self._set(categories=_without(self.data.categories, category_id))

    def _set(self, **collections) -> "AppState":
        return replace(self, data=replace(self.data, **collections))


@dataclass
class SnapshotCache:
    """Persisted copy of the last hydrated bundle."""

    hydrated_at: Optional[datetime] = None
    bundle: Optional[DataBundle] = None

    @classmethod
    def load(cls, path: Path) -> "SnapshotCache":
        if not path.exists():
            return cls()
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return cls()
        hydrated_raw = payload.get("hydrated_at")
        if not hydrated_raw:
            return cls()
        try:
            hydrated_at = datetime.fromisoformat(hydrated_raw)
            bundle = DataBundle.from_dict(payload.get("data") or {})
        except (KeyError, TypeError, ValueError):
            return cls()
        return cls(hydrated_at=hydrated_at, bundle=bundle)

    def save(self, path: Path) -> None:
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        payload: Dict = {
            "hydrated_at": self.hydrated_at.isoformat() if self.hydrated_at else None,
            "data": self.bundle.to_dict() if self.bundle else None,
        }
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _updated(items: Tuple[EntityT, ...], entity_id: str, changes: Dict) -> Tuple[EntityT, ...]:
    return tuple(replace(item, **changes) if item.id == entity_id else item for item in items)


def _without(items: Tuple[EntityT, ...], entity_id: str) -> Tuple[EntityT, ...]:
    return tuple(item for item in items if item.id != entity_id)
