from datetime import datetime, timezone
from decimal import Decimal

from class_finance.models import Category
from class_finance.state_manager import AppState, SnapshotCache
from fakes import make_payment


def test_updates_return_new_state_without_touching_old(bundle):
    state = AppState(data=bundle, is_hydrated=True)
    added = state.add_transaction(make_payment("p3", "B", 200))
    assert len(added.data.transactions) == 3
    assert len(state.data.transactions) == 2

    renamed = added.update_student("B", nick_name="Fon")
    assert renamed.data.find_student("B").nick_name == "Fon"
    assert added.data.find_student("B").nick_name is None

    trimmed = renamed.delete_transaction("p1").delete_schedule("sch1")
    assert [t.id for t in trimmed.data.transactions] == ["p2", "p3"]
    assert trimmed.data.schedules == ()
    assert trimmed.is_hydrated is True


def test_category_and_schedule_updates(bundle):
    state = AppState(data=bundle)
    state = state.add_category(Category(id="c2", name="Food")).update_category("c1", icon="box")
    assert [c.icon for c in state.data.categories] == ["box", None]
    state = state.update_schedule("sch1", amount_per_item=Decimal("250"))
    assert state.data.schedules[0].amount_per_item == Decimal("250")
    assert state.delete_category("c2").delete_student("A").data.find_student("A") is None


def test_error_and_hydration_flags():
    state = AppState().with_error("boom").mark_hydrated()
    assert state.hydration_error == "boom"
    assert state.is_hydrated is True
    assert state.data.transactions == ()


def test_snapshot_cache_loads_from_missing_file(tmp_path):
    cache = SnapshotCache.load(tmp_path / "snapshot.json")
    assert cache.bundle is None
    assert cache.hydrated_at is None


def test_snapshot_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text("{not json", encoding="utf-8")
    assert SnapshotCache.load(path).bundle is None


def test_snapshot_cache_save_and_load(tmp_path, bundle):
    path = tmp_path / "nested" / "snapshot.json"
    SnapshotCache(hydrated_at=datetime(2025, 11, 1, tzinfo=timezone.utc), bundle=bundle).save(path)

    loaded = SnapshotCache.load(path)
    assert loaded.hydrated_at == datetime(2025, 11, 1, tzinfo=timezone.utc)
    assert [t.id for t in loaded.bundle.transactions] == ["p1", "p2"]
    assert loaded.bundle.schedules[0].student_ids == ("A", "B")
    assert "อุปกรณ์" in path.read_text(encoding="utf-8")
