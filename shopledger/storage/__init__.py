"""
Storage Services Package

Provides the abstract collection interface, the concrete backends and the
repository / unit-of-work layer the rest of the application uses.
"""

from shopledger.storage.interface import (
    ALL_COLLECTIONS,
    Collection,
    CollectionBackend,
    ConnectionError,
    MigrationError,
    NotFoundError,
    StorageError,
)
from shopledger.storage.memory import InMemoryBackend
from shopledger.storage.json_file import JsonFileBackend
from shopledger.storage.google_sheets import GoogleSheetsBackend, GoogleSheetsClient
from shopledger.storage.migration import MigrationReport, migrate_collections
from shopledger.storage.repositories import LedgerStore, Repository, UnitOfWork

__all__ = [
    # Interfaces
    "ALL_COLLECTIONS",
    "Collection",
    "CollectionBackend",
    # Exceptions
    "ConnectionError",
    "MigrationError",
    "NotFoundError",
    "StorageError",
    # Backends
    "GoogleSheetsBackend",
    "GoogleSheetsClient",
    "InMemoryBackend",
    "JsonFileBackend",
    # Migration
    "MigrationReport",
    "migrate_collections",
    # Repositories
    "LedgerStore",
    "Repository",
    "UnitOfWork",
]
