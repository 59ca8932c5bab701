import pytest

from class_finance.hydration import HydrationError, hydrate, hydrate_state
from class_finance.state_manager import AppState
from class_finance.supabase_client import SupabaseClient
from fakes import FakeResponse, FakeSession

ROUTES = {
    ("GET", "students"): FakeResponse([{"id": "A", "number": 1, "prefix": "", "first_name": "A", "last_name": "B"}]),
    ("GET", "schedules"): FakeResponse(
        [{"id": "s1", "name": "Fee", "amount_per_item": 100, "start_date": "2025-01-01", "student_ids": ["A"]}]
    ),
    ("GET", "transactions"): FakeResponse(
        [
            {
                "id": "t1",
                "name": "Fee",
                "kind": "income",
                "source": "schedule",
                "amount": 100,
                "method": "bank",
                "schedule_id": "s1",
                "student_id": "A",
                "created_at": "2025-01-02T00:00:00Z",
            },
            {
                "id": "t2",
                "name": "Orphan",
                "kind": "income",
                "source": "schedule",
                "amount": 10,
                "method": "cash",
                "schedule_id": "s1",
                "student_id": None,
                "created_at": "2025-01-03T00:00:00Z",
            },
        ]
    ),
    ("GET", "categories"): FakeResponse([{"id": "c1", "name": "Food"}]),
}


def _client(routes):
    return SupabaseClient(url="https://proj.supabase.co", api_key="anon", session=FakeSession(routes))


def test_hydrate_assembles_bundle_and_warns_about_orphans(caplog):
    bundle = hydrate(_client(ROUTES))
    assert [s.id for s in bundle.students] == ["A"]
    assert bundle.schedules[0].student_ids == ("A",)
    assert bundle.transactions[0].method == "kplus"
    assert bundle.categories[0].name == "Food"
    assert "t2" in caplog.text


def test_hydrate_fails_as_a_whole():
    routes = dict(ROUTES)
    routes[("GET", "schedules")] = FakeResponse({"message": "timeout"}, status_code=500)
    with pytest.raises(HydrationError) as excinfo:
        hydrate(_client(routes))
    assert "schedules" in str(excinfo.value)


def test_hydrate_state_keeps_previous_data_on_failure(bundle):
    routes = dict(ROUTES)
    routes[("GET", "students")] = FakeResponse({"message": "down"}, status_code=503)
    previous = AppState(data=bundle)
    state = hydrate_state(_client(routes), previous)
    assert state.is_hydrated is True
    assert state.data is bundle
    assert "down" in state.hydration_error

    fresh = hydrate_state(_client(ROUTES), state)
    assert fresh.hydration_error is None
    assert len(fresh.data.transactions) == 2


def test_hydrate_state_records_a_malformed_row(bundle):
    routes = dict(ROUTES)
    routes[("GET", "students")] = FakeResponse([{"id": "A", "number": None}])
    state = hydrate_state(_client(routes), AppState(data=bundle))
    assert state.is_hydrated is True
    assert state.data is bundle
    assert "students: malformed row" in state.hydration_error
