"""Client utilities for the Supabase REST (PostgREST) API."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Generic, Iterable, List, Optional, Type, TypeVar

import requests

from class_finance.models import Category, Schedule, Student, Transaction, money_to_wire

if TYPE_CHECKING:
    from class_finance.storage_client import StorageClient

LOGGER = logging.getLogger(__name__)

# PostgREST / Postgres error codes
NOT_FOUND_CODE = "PGRST116"
MISSING_TABLE_CODE = "42P01"
CONSTRAINT_CODES = {"23514", "23505", "23503", "23502"}

ModelT = TypeVar("ModelT", Student, Schedule, Transaction, Category)


class StoreError(RuntimeError):
    """Raised when the remote store cannot complete a request."""

    def __init__(self, message: str, *, code: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class NotFoundError(StoreError):
    pass


class ConstraintError(StoreError):
    pass


class MissingTableError(StoreError):
    pass


@dataclass
class PingResult:
    ok: bool = False
    error: Optional[str] = None
    students_count: Optional[int] = None
    storage_ok: bool = False


class EntityStore(Generic[ModelT]):
    """CRUD operations for one Supabase table, returning model objects."""

    def __init__(
        self,
        client: "SupabaseClient",
        *,
        table: str,
        model: Type[ModelT],
        order: str,
        missing_ok: bool = False,
    ) -> None:
        self._client = client
        self.table = table
        self._model = model
        self._order = order
        self._missing_ok = missing_ok

    def list(self) -> List[ModelT]:
        try:
            rows = self._client.request("GET", self.table, params={"select": "*", "order": self._order})
        except MissingTableError:
            if not self._missing_ok:
                raise
            LOGGER.warning("Table %s does not exist yet, treating it as empty", self.table)
            return []
        return [self._model.from_row(row) for row in rows or []]

    def list_where(self, column: str, value: object, *, order: Optional[str] = None) -> List[ModelT]:
        params = {"select": "*", column: f"eq.{value}", "order": order or self._order}
        rows = self._client.request("GET", self.table, params=params)
        return [self._model.from_row(row) for row in rows or []]

    def get_by_id(self, entity_id: str) -> Optional[ModelT]:
        try:
            row = self._client.request(
                "GET",
                self.table,
                params={"select": "*", "id": f"eq.{entity_id}"},
                headers={"Accept": "application/vnd.pgrst.object+json"},
            )
        except NotFoundError:
            return None
        return self._model.from_row(row) if row else None

    def create(self, entity: ModelT) -> ModelT:
        rows = self._client.request("POST", self.table, json=entity.to_row(), headers=_RETURN_REPRESENTATION)
        if not rows:
            raise StoreError(f"No data returned when creating {self.table} row")
        return self._model.from_row(rows[0])

    def create_many(self, entities: Iterable[ModelT]) -> List[ModelT]:
        payload = [entity.to_row() for entity in entities]
        if not payload:
            return []
        LOGGER.info("Inserting %d rows into %s", len(payload), self.table)
        rows = self._client.request("POST", self.table, json=payload, headers=_RETURN_REPRESENTATION)
        return [self._model.from_row(row) for row in rows or []]

    def update(self, entity_id: str, changes: Dict[str, object]) -> ModelT:
        rows = self._client.request(
            "PATCH",
            self.table,
            params={"id": f"eq.{entity_id}"},
            json=_to_wire(changes),
            headers=_RETURN_REPRESENTATION,
        )
        if not rows:
            raise NotFoundError(f"No {self.table} row with id {entity_id}", code=NOT_FOUND_CODE)
        return self._model.from_row(rows[0])

    def delete(self, entity_id: str) -> None:
        self.delete_where("id", entity_id)

    def delete_where(self, column: str, value: object) -> None:
        LOGGER.info("Deleting %s rows where %s=%s", self.table, column, value)
        self._client.request("DELETE", self.table, params={column: f"eq.{value}"})


class SupabaseClient:
    """Minimal HTTP client for a Supabase project's tables."""

    def __init__(
        self,
        *,
        url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ) -> None:
        self.base_url = url.rstrip("/")
        self._api_key = api_key
        self._session = session
        self._local = threading.local()
        self._timeout = timeout
        self.students: EntityStore[Student] = EntityStore(self, table="students", model=Student, order="number.asc")
        self.schedules: EntityStore[Schedule] = EntityStore(
            self, table="schedules", model=Schedule, order="start_date.desc"
        )
        self.transactions: EntityStore[Transaction] = EntityStore(
            self, table="transactions", model=Transaction, order="created_at.desc"
        )
        self.categories: EntityStore[Category] = EntityStore(
            self, table="categories", model=Category, order="name.asc", missing_ok=True
        )

    @property
    def session(self) -> requests.Session:
        """The injected session, else one ``requests.Session`` per calling thread."""

        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def active_schedules(self, today: Optional[date] = None) -> List[Schedule]:
        """Return schedules with no end date or one that has not passed yet."""

        day = (today or date.today()).isoformat()
        rows = self.request(
            "GET",
            "schedules",
            params={"select": "*", "or": f"(end_date.is.null,end_date.gte.{day})", "order": "start_date.desc"},
        )
        return [Schedule.from_row(row) for row in rows or []]

    def transactions_for_month(self, month: str) -> List[Transaction]:
        start, end = month_bounds(month)
        params = [
            ("select", "*"),
            ("created_at", f"gte.{start}"),
            ("created_at", f"lt.{end}"),
            ("order", "created_at.desc"),
        ]
        rows = self.request("GET", "transactions", params=params)
        return [Transaction.from_row(row) for row in rows or []]

    def delete_student(self, student_id: str, storage: Optional["StorageClient"] = None) -> None:
        """Delete a student together with their transactions and avatar."""

        student = self.students.get_by_id(student_id)
        if student and student.avatar_url and storage is not None:
            try:
                storage.delete_student_avatar(student.avatar_url)
            except StoreError:
                LOGGER.warning("Failed to delete avatar for student %s, continuing", student_id, exc_info=True)
        self.transactions.delete_where("student_id", student_id)
        self.students.delete(student_id)
        LOGGER.info("Deleted student %s", student_id)

    def count(self, table: str) -> int:
        response = self.request(
            "GET",
            table,
            params={"select": "id"},
            headers={"Prefer": "count=exact", "Range-Unit": "items", "Range": "0-0"},
            raw=True,
        )
        content_range = response.headers.get("Content-Range", "")
        _, _, total = content_range.partition("/")
        try:
            return int(total)
        except ValueError:
            return 0

    def ping(self, storage: Optional["StorageClient"] = None) -> PingResult:
        """Check table access and, when given, storage bucket access."""

        result = PingResult()
        errors: List[str] = []
        try:
            result.students_count = self.count("students")
        except StoreError as exc:
            errors.append(f"students head error: {exc}")
        if storage is not None:
            try:
                storage.list(limit=1)
                result.storage_ok = True
            except StoreError as exc:
                errors.append(f"storage: {exc}")
        result.error = " | ".join(errors) or None
        result.ok = not errors
        return result

    def request(
        self,
        method: str,
        path: str,
        *,
        params=None,
        json=None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        api: str = "rest",
        raw: bool = False,
    ):
        url = f"{self.base_url}/{api}/v1/{path.lstrip('/')}"
        request_headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
        }
        if headers:
            request_headers.update(headers)
        LOGGER.debug("Supabase request %s %s params=%s", method, url, params)
        try:
            response = self.session.request(
                method,
                url,
                headers=request_headers,
                params=params,
                json=json,
                data=data,
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise _translate_error(exc.response) from exc
        except requests.RequestException as exc:
            raise StoreError(f"Request to {path} failed: {exc}") from exc
        if raw:
            return response
        if response.status_code == 204 or not response.content:
            return None
        return response.json()


_RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def month_bounds(month: str) -> tuple[str, str]:
    """Return ISO dates for the first day of ``month`` and of the month after."""

    year_text, _, month_text = month.partition("-")
    year, month_number = int(year_text), int(month_text)
    if not 1 <= month_number <= 12:
        raise ValueError(f"Invalid month: {month}")
    start = date(year, month_number, 1)
    end = date(year + 1, 1, 1) if month_number == 12 else date(year, month_number + 1, 1)
    return start.isoformat(), end.isoformat()


def _to_wire(changes: Dict[str, object]) -> Dict[str, object]:
    wire: Dict[str, object] = {}
    for key, value in changes.items():
        if isinstance(value, Decimal):
            value = money_to_wire(value)
        elif isinstance(value, (tuple, set, frozenset)):
            value = list(value)
        wire[key] = value
    return wire


def _translate_error(response) -> StoreError:
    if response is None:
        return StoreError("Supabase request failed without a response")
    status = getattr(response, "status_code", None)
    try:
        payload = response.json() or {}
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    code = payload.get("code") or payload.get("error")
    message = payload.get("message") or payload.get("msg") or f"HTTP {status}"
    if code == MISSING_TABLE_CODE:
        return MissingTableError(message, code=code, status=status)
    if code == NOT_FOUND_CODE or status == 404:
        return NotFoundError(message, code=code, status=status)
    if code in CONSTRAINT_CODES:
        return ConstraintError(f"Database constraint error: {message}", code=code, status=status)
    LOGGER.error("Supabase request failed (%s %s): %s", status, code, message)
    return StoreError(message, code=code, status=status)
