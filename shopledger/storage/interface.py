"""
Abstract Storage Interface

DESIGN DECISION: Storage is a set of named collections, each loaded and
saved as a whole list of JSON objects. This allows us to:
1. Keep reading the one-file-per-collection layout existing data uses
2. Use in-memory storage for testing
3. Put a Google Sheet behind the same interface
4. Keep business logic decoupled from storage implementation

The interface is intentionally small - load a collection, save a
collection, and commit several collections as one logical write.
"""

from abc import ABC, abstractmethod
from enum import Enum


class Collection(str, Enum):
    """The five persisted collections."""
    ORDERS = "orders"
    EXPENSES = "expenses"
    VENDORS = "vendors"
    TRANSACTIONS = "transactions"
    FUNDS = "funds"


ALL_COLLECTIONS: tuple[Collection, ...] = tuple(Collection)


class CollectionBackend(ABC):
    """
    Abstract interface for collection storage.

    Any storage implementation (JSON files, Google Sheets, memory)
    must implement load and save. A missing collection loads as [].
    """

    @abstractmethod
    def load(self, collection: Collection) -> list[dict]:
        """
        Load every record of a collection.

        Returns:
            The records, or an empty list if the collection was never saved

        Raises:
            StorageError: If the collection exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, collection: Collection, records: list[dict]) -> None:
        """
        Replace a collection with the given records.

        Raises:
            StorageError: If the write fails
        """
        pass

    def commit(self, changes: dict[Collection, list[dict]]) -> None:
        """
        Persist several collections as one logical write.

        The default saves them one after another, so a crash midway
        leaves the earlier collections written. Backends that can do
        better override this.
        """
        for collection, records in changes.items():
            self.save(collection, records)

    def load_all(self) -> dict[Collection, list[dict]]:
        """Load all five collections."""
        return {collection: self.load(collection) for collection in ALL_COLLECTIONS}


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class MigrationError(StorageError):
    """Stored data could not be brought into the canonical schema."""
    pass
