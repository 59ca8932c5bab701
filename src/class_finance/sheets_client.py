"""Google Sheets export of the finance report."""
from __future__ import annotations

import logging
from typing import List, Sequence

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from google.oauth2.service_account import Credentials

LOGGER = logging.getLogger(__name__)

TRANSACTION_HEADERS = [
    "id",
    "created_at",
    "name",
    "source",
    "kind",
    "amount",
    "method",
    "category",
    "schedule",
    "student",
]

PAYMENT_STATUS_HEADERS = [
    "schedule",
    "number",
    "student",
    "paid",
    "remaining",
    "status",
]


class SheetsClient:
    def __init__(
        self,
        *,
        spreadsheet_id: str,
        credentials_path: str,
        transactions_tab: str = "Transactions",
        status_tab: str = "PaymentStatus",
    ) -> None:
        self._spreadsheet_id = spreadsheet_id
        self._transactions_tab = transactions_tab
        self._status_tab = status_tab
        credentials = Credentials.from_service_account_file(
            credentials_path, scopes=["https://www.googleapis.com/auth/spreadsheets"]
        )
        self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)

    def write_transactions(self, rows: Sequence[List[str]]) -> None:
        self._replace_tab(self._transactions_tab, TRANSACTION_HEADERS, rows)

    def write_payment_status(self, rows: Sequence[List[str]]) -> None:
        self._replace_tab(self._status_tab, PAYMENT_STATUS_HEADERS, rows)

    def _replace_tab(self, tab: str, headers: List[str], rows: Sequence[List[str]]) -> None:
        """Clear ``tab`` and write the header row followed by ``rows``."""

        last_column = chr(ord("A") + len(headers) - 1)
        values = self._service.spreadsheets().values()
        try:
            values.clear(spreadsheetId=self._spreadsheet_id, range=f"{tab}!A:{last_column}").execute()
            values.update(
                spreadsheetId=self._spreadsheet_id,
                range=f"{tab}!A1:{last_column}",
                valueInputOption="USER_ENTERED",
                body={"values": [headers, *rows]},
            ).execute()
        except HttpError:
            LOGGER.exception("Failed writing %s", tab)
            raise
        LOGGER.info("Wrote %d row(s) to %s", len(rows), tab)
