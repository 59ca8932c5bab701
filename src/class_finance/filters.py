"""Filtering of transactions for list views."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

from class_finance.models import Transaction, normalise_method


@dataclass(frozen=True)
class TransactionFilter:
    """Conjunctive criteria matched against transactions. Empty criteria match everything."""

    source: Optional[str] = None
    kind: Optional[str] = None
    method: Optional[str] = None
    search: Optional[str] = None

    def matches(self, transaction: Transaction) -> bool:
        if self.source and transaction.source != self.source:
            return False
        if self.kind and transaction.kind != self.kind:
            return False
        if self.method and transaction.method != normalise_method(self.method):
            return False
        if self.search and self.search.lower() not in (transaction.name or "").lower():
            return False
        return True


def build_filter(raw: Optional[Mapping[str, object]]) -> TransactionFilter:
    """Create a :class:`TransactionFilter` from loosely typed options."""

    if not raw:
        return TransactionFilter()
    return TransactionFilter(
        source=_to_text(raw.get("source")),
        kind=_to_text(raw.get("kind")),
        method=_to_text(raw.get("method")),
        search=_to_text(raw.get("search")),
    )


def filter_transactions(
    transactions: Iterable[Transaction],
    *,
    source: Optional[str] = None,
    kind: Optional[str] = None,
    method: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Transaction]:
    """Return the transactions matching every given criterion, in input order."""

    criteria = TransactionFilter(source=source, kind=kind, method=method, search=search)
    return [txn for txn in transactions if criteria.matches(txn)]


def _to_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
