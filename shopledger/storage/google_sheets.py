"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can back the ledger when the owner wants
the data somewhere they can open from any device:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each collection is one worksheet. Row 1 is a header; every following row
is one record as [id, record_json]. Records keep their nested expense
lines and payments, so a flat column layout would not fit them.

TRADEOFFS:
- No transactions: commit() falls back to saving worksheets in order
- Every save rewrites the worksheet in place with one update call;
  rows left over from a longer previous save are blanked in that same call
- No retries: a failed call is reported once and surfaced to the user
"""

import json
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials

from shopledger.config import get_settings
from shopledger.config.settings import GoogleSheetsSettings
from shopledger.log import get_logger
from shopledger.storage.interface import (
    Collection,
    CollectionBackend,
    ConnectionError,
    StorageError,
)


SHEET_COLUMNS = ["id", "record_json"]

WORKSHEET_TITLES = {
    Collection.ORDERS: "Orders",
    Collection.EXPENSES: "Expenses",
    Collection.VENDORS: "Vendors",
    Collection.TRANSACTIONS: "VendorTransactions",
    Collection.FUNDS: "Funds",
}


logger = get_logger(__name__)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str) -> gspread.Worksheet:
        """Get or create a worksheet with the record header."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(SHEET_COLUMNS),
            )
            sheet.append_row(SHEET_COLUMNS)
        return sheet


class GoogleSheetsBackend(CollectionBackend):
    """Google Sheets implementation of collection storage."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _worksheet(self, collection: Collection):
        return self._client.get_worksheet(WORKSHEET_TITLES[Collection(collection)])

    def load(self, collection: Collection) -> list[dict]:
        collection = Collection(collection)
        try:
            sheet = self._worksheet(collection)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {collection.value}: {e}")

        records = []
        for row_number, row in enumerate(all_rows, start=2):
            if len(row) < 2 or not row[1]:
                continue  # Skip empty rows
            try:
                record = json.loads(row[1])
            except json.JSONDecodeError as e:
                raise StorageError(
                    f"Malformed record in {collection.value} row {row_number}: {e}"
                )
            if not isinstance(record, dict):
                raise StorageError(
                    f"Malformed record in {collection.value} row {row_number}: not an object"
                )
            records.append(record)
        return records

    def save(self, collection: Collection, records: list[dict]) -> None:
        collection = Collection(collection)
        rows = [SHEET_COLUMNS]
        for record in records:
            rows.append([str(record.get("id", "")), json.dumps(record, ensure_ascii=False)])

        try:
            sheet = self._worksheet(collection)
            stale = len(sheet.get_all_values()) - len(rows)
            rows.extend([""] * len(SHEET_COLUMNS) for _ in range(max(stale, 0)))
            # A failed write leaves the previous rows untouched
            sheet.update(values=rows, range_name="A1", value_input_option="RAW")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {collection.value}: {e}")

        logger.debug(
            "worksheet_saved",
            collection=collection.value,
            record_count=len(records),
        )
