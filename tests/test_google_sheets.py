"""Tests for the Google Sheets backend, against a fake client (no network)."""

import json

import pytest

from shopledger.storage import Collection, StorageError
from shopledger.storage.google_sheets import SHEET_COLUMNS, GoogleSheetsBackend


class FakeWorksheet:
    def __init__(self, rows=None):
        self.rows = [list(row) for row in (rows or [SHEET_COLUMNS])]
        self.fail = False
        self.fail_writes = False
        self.updates = 0

    def get_all_values(self):
        if self.fail:
            raise RuntimeError("quota exceeded")
        rows = [list(row) for row in self.rows]
        # The Sheets API leaves out trailing empty rows
        while rows and not any(rows[-1]):
            rows.pop()
        return rows

    def update(self, values=None, range_name=None, value_input_option=None):
        if self.fail_writes:
            raise RuntimeError("write rejected")
        assert range_name == "A1"
        self.updates += 1
        values = [list(row) for row in values]
        self.rows = values + self.rows[len(values):]


class FakeClient:
    def __init__(self):
        self.sheets = {}

    def get_worksheet(self, title):
        return self.sheets.setdefault(title, FakeWorksheet())


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def backend(client):
    return GoogleSheetsBackend(client)


class TestGoogleSheetsBackend:
    """One worksheet per collection, one JSON record per row."""

    def test_empty_sheet_loads_empty(self, backend):
        assert backend.load(Collection.ORDERS) == []

    def test_save_then_load(self, backend, client):
        records = [{"id": "o1", "expenses": [{"id": "e1", "amount": 200}]}]
        backend.save(Collection.ORDERS, records)

        sheet = client.sheets["Orders"]
        assert sheet.rows[0] == SHEET_COLUMNS
        assert sheet.rows[1][0] == "o1"
        assert backend.load(Collection.ORDERS) == records

    def test_transactions_worksheet_title(self, backend, client):
        backend.save(Collection.TRANSACTIONS, [{"id": "t1"}])
        assert "VendorTransactions" in client.sheets

    def test_blank_rows_skipped(self, backend, client):
        client.sheets["Vendors"] = FakeWorksheet([
            SHEET_COLUMNS,
            ["v1", json.dumps({"id": "v1", "name": "Rashid"})],
            ["", ""],
        ])
        assert backend.load(Collection.VENDORS) == [{"id": "v1", "name": "Rashid"}]

    def test_malformed_row_raises(self, backend, client):
        client.sheets["Funds"] = FakeWorksheet([SHEET_COLUMNS, ["f1", "{broken"]])
        with pytest.raises(StorageError):
            backend.load(Collection.FUNDS)

    def test_api_failure_becomes_storage_error(self, backend, client):
        sheet = client.get_worksheet("Expenses")
        sheet.fail = True
        with pytest.raises(StorageError):
            backend.load(Collection.EXPENSES)

    def test_failed_write_keeps_previous_rows(self, backend, client):
        backend.save(Collection.ORDERS, [{"id": "o1"}, {"id": "o2"}])
        sheet = client.sheets["Orders"]
        before = [list(row) for row in sheet.rows]

        sheet.fail_writes = True
        with pytest.raises(StorageError):
            backend.save(Collection.ORDERS, [{"id": "o3"}])

        assert sheet.rows == before
        assert backend.load(Collection.ORDERS) == [{"id": "o1"}, {"id": "o2"}]

    def test_shorter_save_blanks_leftover_rows(self, backend, client):
        """Test that rows from a longer earlier save do not come back."""
        backend.save(Collection.VENDORS, [{"id": "v1"}, {"id": "v2"}, {"id": "v3"}])
        backend.save(Collection.VENDORS, [{"id": "v9"}])

        sheet = client.sheets["Vendors"]
        assert sheet.updates == 2
        assert sheet.rows[1][0] == "v9"
        assert sheet.rows[2:] == [["", ""], ["", ""]]
        assert backend.load(Collection.VENDORS) == [{"id": "v9"}]

    def test_save_empty_collection(self, backend, client):
        backend.save(Collection.FUNDS, [{"id": "f1"}])
        backend.save(Collection.FUNDS, [])

        assert client.sheets["Funds"].rows[0] == SHEET_COLUMNS
        assert backend.load(Collection.FUNDS) == []

    def test_commit_saves_each_collection(self, backend, client):
        backend.commit({
            Collection.ORDERS: [{"id": "o1"}],
            Collection.TRANSACTIONS: [{"id": "t1"}],
        })
        assert backend.load(Collection.ORDERS) == [{"id": "o1"}]
        assert backend.load(Collection.TRANSACTIONS) == [{"id": "t1"}]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
