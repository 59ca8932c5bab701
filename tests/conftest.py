import sys
from decimal import Decimal
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT / "src"
for path in (SRC_DIR, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from class_finance.models import Category, DataBundle, Schedule, Student  # noqa: E402
from fakes import make_payment  # noqa: E402


@pytest.fixture
def students():
    return (
        Student(id="A", number=1, prefix="นาย", first_name="Somchai", last_name="Jaidee"),
        Student(id="B", number=2, prefix="นางสาว", first_name="Somsri", last_name="Jaingam"),
    )


@pytest.fixture
def book_fee():
    return Schedule(
        id="sch1",
        name="Book fee",
        start_date="2025-11-01",
        end_date="2025-11-30",
        amount_per_item=Decimal("200"),
        student_ids=("A", "B"),
    )


@pytest.fixture
def bundle(students, book_fee):
    return DataBundle(
        students=students,
        schedules=(book_fee,),
        transactions=(
            make_payment("p1", "A", 150, method="cash"),
            make_payment("p2", "A", 50, method="kplus"),
        ),
        categories=(Category(id="c1", name="อุปกรณ์"),),
    )
