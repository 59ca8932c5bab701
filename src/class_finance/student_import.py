"""Bulk student import from CSV and the matching template."""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from class_finance.models import Student

STUDENT_CSV_HEADERS = ["prefix", "first_name", "last_name", "nick_name", "number"]

_TEMPLATE_ROWS = [
    STUDENT_CSV_HEADERS,
    ["นาย", "สมชาย", "ใจดี", "บอล", "1"],
    ["นางสาว", "สมศรี", "ใจงาม", "ฝน", "2"],
]


class StudentImportError(ValueError):
    pass


@dataclass(frozen=True)
class StudentImport:
    students: Tuple[Student, ...]
    invalid: int
    duplicates: int

    def describe(self) -> str:
        message = f"import {len(self.students)} student(s)"
        if self.duplicates:
            message += f", skipped {self.duplicates} duplicate(s)"
        if self.invalid:
            message += f", skipped {self.invalid} invalid row(s)"
        return message


def parse_student_csv(text: str, existing_numbers: Iterable[int] = ()) -> StudentImport:
    """Parse student rows, skipping invalid numbers and numbers already taken.

    The returned students have an empty ``id``; the store assigns one on insert.
    """

    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        raise StudentImportError("CSV file has no student rows")
    header = [cell.strip().lower() for cell in rows[0]]
    missing = [name for name in STUDENT_CSV_HEADERS if name not in header]
    if missing:
        raise StudentImportError("CSV header must contain: " + ",".join(STUDENT_CSV_HEADERS))
    index = {name: header.index(name) for name in STUDENT_CSV_HEADERS}

    taken = set(existing_numbers)
    seen: set[int] = set()
    students: List[Student] = []
    invalid = 0
    duplicates = 0
    for row in rows[1:]:
        if len(row) < len(header):
            invalid += 1
            continue
        number = _parse_number(row[index["number"]])
        if number is None:
            invalid += 1
            continue
        if number in taken or number in seen:
            duplicates += 1
            continue
        seen.add(number)
        students.append(
            Student(
                id="",
                number=number,
                prefix=row[index["prefix"]].strip(),
                first_name=row[index["first_name"]].strip(),
                last_name=row[index["last_name"]].strip(),
                nick_name=row[index["nick_name"]].strip() or None,
            )
        )
    return StudentImport(students=tuple(students), invalid=invalid, duplicates=duplicates)


def student_template_csv() -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(_TEMPLATE_ROWS)
    return buffer.getvalue()


def _parse_number(raw: str):
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if value <= 0 or not value.is_integer():
        return None
    return int(value)
