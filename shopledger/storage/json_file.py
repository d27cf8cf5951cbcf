"""
JSON File Storage Implementation

DESIGN DECISION: One JSON file per collection in a data directory, each
holding a single top-level key with the record list:

    orders.json               {"orders": [...]}
    expenses.json             {"expenses": [...]}
    vendors.json              {"vendors": [...]}
    vendor-transactions.json  {"transactions": [...]}
    funds.json                {"funds": [...]}

This is the layout existing data directories already have, so they can be
opened as-is.

TRADEOFFS:
- Every write rewrites the whole collection (fine at this data volume)
- Several collections cannot be replaced in one filesystem operation,
  so multi-collection commits go through a write-ahead journal:
  1. write the journal (all staged collections) atomically
  2. atomically replace each collection file
  3. delete the journal
  A journal left behind by a crash is replayed when the backend opens.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from shopledger.log import get_logger
from shopledger.storage.interface import (
    Collection,
    CollectionBackend,
    StorageError,
)


FILE_NAMES = {
    Collection.ORDERS: "orders.json",
    Collection.EXPENSES: "expenses.json",
    Collection.VENDORS: "vendors.json",
    Collection.TRANSACTIONS: "vendor-transactions.json",
    Collection.FUNDS: "funds.json",
}

JOURNAL_FILE_NAME = "commit-journal.json"


logger = get_logger(__name__)


def atomic_write_json(path: Path, payload: Any) -> None:
    """Write JSON to a temp file in the same directory, then rename over path."""
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


class JsonFileBackend(CollectionBackend):
    """
    Collections stored as JSON files in one directory.

    The directory is created if needed, and any pending journal is
    replayed before the first read.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._data_dir}: {e}")
        self.recover()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def journal_path(self) -> Path:
        return self._data_dir / JOURNAL_FILE_NAME

    def path_for(self, collection: Collection) -> Path:
        return self._data_dir / FILE_NAMES[Collection(collection)]

    def load(self, collection: Collection) -> list[dict]:
        collection = Collection(collection)
        path = self.path_for(collection)
        if not path.exists():
            return []

        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path.name}: {e}")

        if not isinstance(payload, dict):
            raise StorageError(f"Unexpected content in {path.name}: expected an object")

        records = payload.get(collection.value, [])
        if records is None:
            return []
        if not isinstance(records, list):
            raise StorageError(
                f"Unexpected content in {path.name}: '{collection.value}' is not a list"
            )
        return records

    def save(self, collection: Collection, records: list[dict]) -> None:
        collection = Collection(collection)
        path = self.path_for(collection)
        try:
            atomic_write_json(path, {collection.value: records})
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save {collection.value}: {e}")

    def commit(self, changes: dict[Collection, list[dict]]) -> None:
        changes = {Collection(c): records for c, records in changes.items()}
        if len(changes) <= 1:
            # A single atomic rename needs no journal
            for collection, records in changes.items():
                self.save(collection, records)
            return

        journal = {
            "collections": {c.value: records for c, records in changes.items()},
        }
        try:
            atomic_write_json(self.journal_path, journal)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write commit journal: {e}")

        for collection, records in changes.items():
            self.save(collection, records)

        self._discard_journal()
        logger.debug(
            "journal_committed",
            collections=[c.value for c in changes],
        )

    def recover(self) -> bool:
        """
        Replay a journal left by an interrupted commit.

        Returns:
            True if a journal was found and replayed
        """
        if not self.journal_path.exists():
            return False

        try:
            with self.journal_path.open("r", encoding="utf-8") as handle:
                journal = json.load(handle)
            staged = journal["collections"]
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise StorageError(f"Commit journal is unreadable: {e}")

        for name, records in staged.items():
            self.save(Collection(name), records)

        self._discard_journal()
        logger.warning(
            "journal_replayed",
            data_dir=str(self._data_dir),
            collections=sorted(staged),
        )
        return True

    def _discard_journal(self) -> None:
        try:
            self.journal_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove commit journal: {e}")
