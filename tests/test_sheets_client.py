from typing import Any, Dict, List

import pytest

import class_finance.sheets_client as sc


class FakeRequest:
    def __init__(self, response: Dict[str, Any] | None = None, callback=None):
        self._response = response or {}
        self._callback = callback

    def execute(self):
        if self._callback:
            self._callback()
        return self._response


class FakeValuesResource:
    def __init__(self, service: "FakeSheetsService"):
        self._service = service

    def clear(self, spreadsheetId: str, range: str):
        def record():
            self._service.clear_calls.append(range)

        return FakeRequest(callback=record)

    def update(self, spreadsheetId: str, range: str, valueInputOption: str, body: Dict):
        def record():
            self._service.update_calls.append((range, valueInputOption, body))

        return FakeRequest(callback=record)


class FakeSpreadsheetsResource:
    def __init__(self, service: "FakeSheetsService"):
        self._values = FakeValuesResource(service)

    def values(self):
        return self._values


class FakeSheetsService:
    def __init__(self):
        self.clear_calls: List = []
        self.update_calls: List = []
        self._spreadsheets = FakeSpreadsheetsResource(self)

    def spreadsheets(self):
        return self._spreadsheets


class FakeCredentials:
    @classmethod
    def from_service_account_file(cls, path, scopes=None):
        return cls()


@pytest.fixture(autouse=True)
def patch_build(monkeypatch):
    service = FakeSheetsService()

    def fake_build(*args, **kwargs):
        return service

    monkeypatch.setattr(sc, "build", fake_build)
    monkeypatch.setattr(sc, "Credentials", FakeCredentials)
    return service


def test_write_transactions_replaces_tab_with_header(patch_build):
    client = sc.SheetsClient(spreadsheet_id="sheet", credentials_path="creds.json")
    row = ["a"] * len(sc.TRANSACTION_HEADERS)
    client.write_transactions([row])

    assert patch_build.clear_calls == ["Transactions!A:J"]
    range_name, option, body = patch_build.update_calls[0]
    assert range_name == "Transactions!A1:J"
    assert option == "USER_ENTERED"
    assert body["values"] == [sc.TRANSACTION_HEADERS, row]


def test_write_payment_status_uses_status_tab(patch_build):
    client = sc.SheetsClient(spreadsheet_id="sheet", credentials_path="creds.json", status_tab="Status")
    client.write_payment_status([])
    assert patch_build.clear_calls == ["Status!A:F"]
    assert patch_build.update_calls[0][2]["values"] == [sc.PAYMENT_STATUS_HEADERS]
