"""
Database Import / Export

Whole-database snapshot to and from one JSON document:

    {
      "orders": [...], "expenses": [...], "vendors": [...],
      "vendorTransactions": [...], "funds": [...],
      "exportedAt": "<ISO-8601>", "version": "1.1.0"
    }

CRITICAL: Import replaces all five collections. There is no merge and no
de-duplication. A file is fully validated (and migrated to the canonical
schema) before anything is written; a file that fails validation leaves
the existing data untouched.

Failures are returned as a TransferResult with a message for the user,
never raised to the UI.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from shopledger.config import get_settings
from shopledger.config.settings import AppSettings
from shopledger.log import get_logger
from shopledger.models.records import utcnow
from shopledger.models.reports import TransferResult
from shopledger.storage.interface import (
    ALL_COLLECTIONS,
    Collection,
    MigrationError,
    StorageError,
)
from shopledger.storage.json_file import atomic_write_json
from shopledger.storage.migration import migrate_collections
from shopledger.storage.repositories import LedgerStore


EXPORT_FORMAT_VERSION = "1.1.0"

# Snapshot keys differ from collection names for transactions only
SNAPSHOT_KEYS = {
    Collection.ORDERS: "orders",
    Collection.EXPENSES: "expenses",
    Collection.VENDORS: "vendors",
    Collection.TRANSACTIONS: "vendorTransactions",
    Collection.FUNDS: "funds",
}

COUNT_LABELS = {
    Collection.ORDERS: "Orders",
    Collection.EXPENSES: "Expenses",
    Collection.VENDORS: "Vendors",
    Collection.TRANSACTIONS: "Vendor Transactions",
    Collection.FUNDS: "Funds",
}


logger = get_logger(__name__)


class ImportValidationError(Exception):
    """The import file does not have the expected shape."""
    pass


def parse_snapshot(payload: Any) -> dict[Collection, list[dict]]:
    """
    Validate an import document and return its collections.

    `orders` must be present and a list. Other collections default to
    empty when absent.

    Raises:
        ImportValidationError: If the document is unusable
    """
    if not isinstance(payload, dict):
        raise ImportValidationError("Invalid database file format: expected a JSON object.")

    orders = payload.get(SNAPSHOT_KEYS[Collection.ORDERS])
    if not isinstance(orders, list):
        raise ImportValidationError(
            "Invalid database file format: Missing or invalid orders data."
        )

    collections = {}
    for collection in ALL_COLLECTIONS:
        records = payload.get(SNAPSHOT_KEYS[collection])
        if records is None:
            records = []
        if not isinstance(records, list):
            raise ImportValidationError(
                f"Invalid database file format: '{SNAPSHOT_KEYS[collection]}' is not a list."
            )
        collections[collection] = records
    return collections


class DatabaseTransfer:
    """Exports and imports the whole ledger."""

    def __init__(
        self,
        store: LedgerStore,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._settings = settings or get_settings().app
        self._clock = clock

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def build_snapshot(self) -> dict:
        """The export document for the current data."""
        with self._store.unit_of_work() as uow:
            snapshot = {
                SNAPSHOT_KEYS[collection]: uow.read(collection)
                for collection in ALL_COLLECTIONS
            }
        snapshot["exportedAt"] = self._clock().isoformat().replace("+00:00", "Z")
        snapshot["version"] = EXPORT_FORMAT_VERSION
        return snapshot

    def default_file_name(self) -> str:
        return f"{self._settings.export_file_prefix}-{self._clock().date().isoformat()}.json"

    def export_bytes(self) -> bytes:
        """Snapshot as pretty-printed UTF-8 JSON."""
        return json.dumps(self.build_snapshot(), indent=2, ensure_ascii=False).encode("utf-8")

    def export_to_file(self, path: Union[str, Path]) -> TransferResult:
        """
        Write the snapshot to path, replacing any existing file.

        The file is replaced in one rename, so a failed export leaves an
        earlier file at path as it was.

        Returns:
            TransferResult; success is False on any read or write failure
        """
        path = Path(path)
        try:
            snapshot = self.build_snapshot()
            atomic_write_json(path, snapshot)
        except (OSError, StorageError) as e:
            logger.error("database_export_failed", path=str(path), error=str(e))
            return TransferResult(
                success=False,
                message=f"Failed to export database: {e}",
                file_path=str(path),
            )

        counts = self._counts_from_snapshot(snapshot)
        logger.info("database_exported", path=str(path), **counts)
        return TransferResult(
            success=True,
            message="Database exported successfully!",
            file_path=str(path),
            counts=counts,
        )

    # -------------------------------------------------------------------------
    # Import
    # -------------------------------------------------------------------------

    def import_snapshot(self, payload: Any) -> TransferResult:
        """
        Replace all data with the collections of an export document.

        Nothing is written unless the whole document validates.
        """
        try:
            collections = parse_snapshot(payload)
            canonical, report = migrate_collections(collections)
        except ImportValidationError as e:
            logger.warning("database_import_rejected", reason=str(e))
            return TransferResult(success=False, message=str(e))
        except MigrationError as e:
            logger.warning("database_import_rejected", reason=str(e))
            return TransferResult(
                success=False,
                message=f"Invalid database file format: {e}",
            )

        try:
            with self._store.unit_of_work() as uow:
                for collection in ALL_COLLECTIONS:
                    uow.write(collection, canonical[collection])
        except StorageError as e:
            logger.error("database_import_failed", error=str(e))
            return TransferResult(
                success=False,
                message=f"Failed to import database: {e}",
            )

        counts = {
            SNAPSHOT_KEYS[collection]: len(canonical[collection])
            for collection in ALL_COLLECTIONS
        }
        summary = ", ".join(
            f"{COUNT_LABELS[collection]}: {len(canonical[collection])}"
            for collection in ALL_COLLECTIONS
        )
        logger.info(
            "database_imported",
            migrated=report.changed,
            **counts,
        )
        return TransferResult(
            success=True,
            message=f"Database imported successfully! {summary}",
            counts=counts,
        )

    def import_bytes(self, data: bytes) -> TransferResult:
        """Import from raw file content (e.g. an uploaded file)."""
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return TransferResult(
                success=False,
                message=f"Failed to import database: {e}",
            )
        return self.import_snapshot(payload)

    def import_from_file(self, path: Union[str, Path]) -> TransferResult:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error("database_import_failed", path=str(path), error=str(e))
            return TransferResult(
                success=False,
                message=f"Failed to import database: {e}",
                file_path=str(path),
            )

        result = self.import_bytes(data)
        result.file_path = str(path)
        return result

    @staticmethod
    def _counts_from_snapshot(snapshot: dict) -> dict[str, int]:
        return {key: len(snapshot.get(key, [])) for key in SNAPSHOT_KEYS.values()}
