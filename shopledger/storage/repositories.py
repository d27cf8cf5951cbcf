"""
Repositories and Unit of Work

DESIGN DECISION: Every logical operation (save an order and resync its
vendor transactions, delete a vendor and its transactions, import a
backup) runs inside one UnitOfWork:

    with store.unit_of_work() as uow:
        uow.orders.add(order)
        synchronizer.sync_for_order(uow, order)
    # both collections are committed together here

Reads inside a unit of work see its own staged writes. Nothing reaches
the backend until commit; an exception inside the `with` block discards
everything staged.

Each collection is still read and written whole, the way it is stored.
"""

from typing import Callable, Generic, Optional, TypeVar

from shopledger.log import get_logger
from shopledger.models.records import (
    FundTransaction,
    GeneralExpense,
    LedgerRecord,
    Order,
    Vendor,
    VendorTransaction,
)
from shopledger.storage.interface import (
    ALL_COLLECTIONS,
    Collection,
    CollectionBackend,
    NotFoundError,
    StorageError,
)
from shopledger.storage.migration import MigrationReport, migrate_collections


RecordT = TypeVar("RecordT", bound=LedgerRecord)


logger = get_logger(__name__)


class Repository(Generic[RecordT]):
    """Typed access to one collection inside a unit of work."""

    def __init__(
        self,
        uow: "UnitOfWork",
        collection: Collection,
        model: type[RecordT],
    ):
        self._uow = uow
        self._collection = collection
        self._model = model

    @property
    def collection(self) -> Collection:
        return self._collection

    def all(self) -> list[RecordT]:
        """All records, in stored order."""
        return [self._model.model_validate(raw) for raw in self._uow.read(self._collection)]

    def get(self, record_id: str) -> Optional[RecordT]:
        for raw in self._uow.read(self._collection):
            if raw.get("id") == record_id:
                return self._model.model_validate(raw)
        return None

    def require(self, record_id: str) -> RecordT:
        """Like get(), but raise NotFoundError when missing."""
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(f"{self._model.__name__} not found: {record_id}")
        return record

    def add(self, record: RecordT) -> RecordT:
        records = self._uow.read(self._collection)
        records.append(record.to_record())
        self._uow.write(self._collection, records)
        return record

    def put(self, record: RecordT) -> RecordT:
        """Replace the stored record with the same id."""
        records = self._uow.read(self._collection)
        for index, raw in enumerate(records):
            if raw.get("id") == record.id:
                records[index] = record.to_record()
                self._uow.write(self._collection, records)
                return record
        raise NotFoundError(f"{self._model.__name__} not found: {record.id}")

    def delete(self, record_id: str) -> bool:
        return self.delete_where(lambda record: record.id == record_id) > 0

    def delete_where(self, predicate: Callable[[RecordT], bool]) -> int:
        """Delete every record matching predicate. Returns how many were removed."""
        kept = []
        removed = 0
        for raw in self._uow.read(self._collection):
            if predicate(self._model.model_validate(raw)):
                removed += 1
            else:
                kept.append(raw)
        if removed:
            self._uow.write(self._collection, kept)
        return removed

    def replace_all(self, records: list[RecordT]) -> None:
        self._uow.write(self._collection, [record.to_record() for record in records])

    def count(self) -> int:
        return len(self._uow.read(self._collection))


class UnitOfWork:
    """
    Staged whole-collection writes, committed together.

    Use as a context manager; commit happens on a clean exit.
    """

    def __init__(self, backend: CollectionBackend):
        self._backend = backend
        self._loaded: dict[Collection, list[dict]] = {}
        self._dirty: set[Collection] = set()
        self._closed = False

        self.orders: Repository[Order] = Repository(self, Collection.ORDERS, Order)
        self.expenses: Repository[GeneralExpense] = Repository(
            self, Collection.EXPENSES, GeneralExpense
        )
        self.vendors: Repository[Vendor] = Repository(self, Collection.VENDORS, Vendor)
        self.transactions: Repository[VendorTransaction] = Repository(
            self, Collection.TRANSACTIONS, VendorTransaction
        )
        self.funds: Repository[FundTransaction] = Repository(
            self, Collection.FUNDS, FundTransaction
        )

    def read(self, collection: Collection) -> list[dict]:
        """A copy of the collection as seen by this unit of work."""
        collection = Collection(collection)
        if collection not in self._loaded:
            self._loaded[collection] = self._backend.load(collection)
        return list(self._loaded[collection])

    def write(self, collection: Collection, records: list[dict]) -> None:
        if self._closed:
            raise StorageError("Unit of work is already closed")
        collection = Collection(collection)
        self._loaded[collection] = list(records)
        self._dirty.add(collection)

    @property
    def pending_collections(self) -> list[Collection]:
        return [collection for collection in ALL_COLLECTIONS if collection in self._dirty]

    def commit(self) -> None:
        if self._closed:
            raise StorageError("Unit of work is already closed")
        changes = {collection: self._loaded[collection] for collection in self.pending_collections}
        if changes:
            self._backend.commit(changes)
        self._dirty.clear()
        self._closed = True

    def rollback(self) -> None:
        self._loaded.clear()
        self._dirty.clear()
        self._closed = True

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._closed:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()


class LedgerStore:
    """
    Entry point to persisted data.

    Wraps a backend, runs the load-time migration when opened and hands
    out units of work.
    """

    def __init__(self, backend: CollectionBackend, migrate: bool = True):
        self._backend = backend
        self.last_migration: Optional[MigrationReport] = None
        if migrate:
            self.migrate()

    @property
    def backend(self) -> CollectionBackend:
        return self._backend

    def migrate(self) -> MigrationReport:
        """Canonicalize stored data, writing back only if something changed."""
        canonical, report = migrate_collections(self._backend.load_all())
        if report.changed:
            self._backend.commit(canonical)
        self.last_migration = report
        return report

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self._backend)
