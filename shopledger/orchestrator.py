"""
Main Orchestrator for Shop Ledger

This module ties together storage, the vendor transaction synchronizer and
the metrics engine, and defines the application operations:
1. Orders (add, update, complete, delete) with vendor transaction resync
2. Vendors and their transactions (status toggles flow back to orders)
3. Cashbook (general expenses and owner funds)
4. Reports (dashboard figures)

DESIGN DECISION: Every operation is one unit of work. Saving an order and
regenerating its vendor transactions are committed together, so the two
collections cannot drift apart if the process dies between writes.

Resync is best-effort toward the caller: if building the transactions
fails, the order is still saved, the previous transactions are kept and
the failure is logged. rebuild_transactions() repairs any drift.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, NamedTuple, Optional, TypeVar, Union

from shopledger.config import get_settings
from shopledger.config.settings import (
    AppSettings,
    StorageBackendName,
    StorageSettings,
    VendorDeletePolicy,
)
from shopledger.log import configure_logging, get_logger
from shopledger.metrics import dashboard_metrics, fund_summary, order_figures, vendor_totals
from shopledger.metrics.engine import total_general_expenses
from shopledger.models.records import (
    FundTransaction,
    GeneralExpense,
    LedgerRecord,
    Order,
    Vendor,
    VendorPaymentStatus,
    VendorTransaction,
    new_identifier,
    utcnow,
)
from shopledger.models.reports import DashboardMetrics, FundSummary, OrderFigures, VendorTotals
from shopledger.queries import transactions_for_vendor
from shopledger.storage import (
    Collection,
    CollectionBackend,
    GoogleSheetsBackend,
    InMemoryBackend,
    JsonFileBackend,
    LedgerStore,
    UnitOfWork,
)
from shopledger.sync import VendorTransactionSynchronizer
from shopledger.transfer import DatabaseTransfer


RecordT = TypeVar("RecordT", bound=LedgerRecord)

# Never overwritten by an update
PROTECTED_FIELDS = ("id", "created_at")


logger = get_logger(__name__)


def apply_updates(record: RecordT, updates: dict[str, Any], now: datetime) -> RecordT:
    """
    Merge field updates into a record and revalidate it.

    Keys are Python field names. id and created_at are kept as they
    were; updated_at is set to now.

    Raises:
        ValueError: On unknown field names or values that fail validation
    """
    model = type(record)
    unknown = set(updates) - set(model.model_fields)
    if unknown:
        raise ValueError(f"Unknown {model.__name__} fields: {', '.join(sorted(unknown))}")

    data = record.model_dump()
    data.update(updates)
    for field in PROTECTED_FIELDS:
        data[field] = getattr(record, field)
    data["updated_at"] = now
    return model.model_validate(data)


def _as_record(model: type[RecordT], value: Union[RecordT, dict]) -> RecordT:
    if isinstance(value, model):
        return value.model_copy(deep=True)
    return model.model_validate(value)


class OrderFlow:
    """
    Orders and their embedded expense lines and payments.

    Every write that can change expense lines resyncs the order's
    vendor transactions in the same unit of work.
    """

    def __init__(
        self,
        store: LedgerStore,
        synchronizer: Optional[VendorTransactionSynchronizer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._synchronizer = synchronizer or VendorTransactionSynchronizer(clock)
        self._clock = clock

    def list_orders(self) -> list[Order]:
        with self._store.unit_of_work() as uow:
            return uow.orders.all()

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._store.unit_of_work() as uow:
            return uow.orders.get(order_id)

    def add_order(self, order: Union[Order, dict]) -> Order:
        """
        Create an order.

        A new id and creation time are always assigned and the order
        starts out not completed.
        """
        order = _as_record(Order, order)
        order.id = new_identifier()
        order.created_at = self._clock()
        order.updated_at = None
        order.is_completed = False

        with self._store.unit_of_work() as uow:
            self._fill_vendor_names(uow, order)
            uow.orders.add(order)
            self._resync(uow, order)

        logger.info(
            "order_saved",
            order_id=order.id,
            expense_lines=len(order.expenses),
            created=True,
        )
        return order

    def update_order(self, order_id: str, updates: dict[str, Any]) -> Order:
        """
        Apply field updates to an order and resync its transactions.

        Raises:
            NotFoundError: If no order has that id
            ValueError: If the updates are invalid
        """
        with self._store.unit_of_work() as uow:
            order = apply_updates(uow.orders.require(order_id), updates, self._clock())
            self._fill_vendor_names(uow, order)
            uow.orders.put(order)
            self._resync(uow, order)

        logger.info(
            "order_saved",
            order_id=order.id,
            expense_lines=len(order.expenses),
            created=False,
        )
        return order

    def toggle_completion(self, order_id: str) -> Order:
        """Flip an order's completed flag. Expense lines are untouched, so no resync."""
        with self._store.unit_of_work() as uow:
            order = uow.orders.require(order_id)
            order.is_completed = not order.is_completed
            order.updated_at = self._clock()
            uow.orders.put(order)
        return order

    def delete_order(self, order_id: str) -> bool:
        """
        Delete an order and all its vendor transactions.

        Returns:
            False if no order had that id
        """
        with self._store.unit_of_work() as uow:
            deleted = uow.orders.delete(order_id)
            removed = self._synchronizer.remove_for_order(uow, order_id)

        if deleted:
            logger.info("order_deleted", order_id=order_id, transactions_removed=removed)
        return deleted

    def figures(self, order_id: str) -> OrderFigures:
        """Receivable, profit and expense figures of one order."""
        with self._store.unit_of_work() as uow:
            return order_figures(uow.orders.require(order_id))

    def _fill_vendor_names(self, uow: UnitOfWork, order: Order) -> None:
        # Snapshot the vendor's name on lines that were assigned without one
        missing = [e for e in order.expenses if e.has_vendor and not e.vendor_name]
        if not missing:
            return
        names = {vendor.id: vendor.name for vendor in uow.vendors.all()}
        for expense in missing:
            expense.vendor_name = names.get(expense.vendor_id, "")

    def _resync(self, uow: UnitOfWork, order: Order) -> None:
        before = uow.read(Collection.TRANSACTIONS)
        try:
            self._synchronizer.sync_for_order(uow, order)
        except Exception as e:
            # Keep the order write; leave the previous transactions in place
            uow.write(Collection.TRANSACTIONS, before)
            logger.error(
                "vendor_transaction_sync_failed",
                order_id=order.id,
                error=str(e),
            )


class VendorFlow:
    """Vendors, their transactions and payment status."""

    def __init__(
        self,
        store: LedgerStore,
        synchronizer: Optional[VendorTransactionSynchronizer] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._synchronizer = synchronizer or VendorTransactionSynchronizer(clock)
        self._settings = settings or get_settings().app
        self._clock = clock

    def list_vendors(self) -> list[Vendor]:
        with self._store.unit_of_work() as uow:
            return uow.vendors.all()

    def get_vendor(self, vendor_id: str) -> Optional[Vendor]:
        with self._store.unit_of_work() as uow:
            return uow.vendors.get(vendor_id)

    def add_vendor(self, name: str, contact_number: str = "") -> Vendor:
        """
        Raises:
            ValueError: If name is blank
        """
        if not (name or "").strip():
            raise ValueError("Vendor name is required")

        vendor = Vendor(name=name, contact_number=contact_number, created_at=self._clock())
        with self._store.unit_of_work() as uow:
            uow.vendors.add(vendor)

        logger.info("vendor_added", vendor_id=vendor.id)
        return vendor

    def update_vendor(self, vendor_id: str, updates: dict[str, Any]) -> Vendor:
        """
        Update a vendor. `vendor_name` is accepted as an alias of `name`;
        a blank name keeps the current one.
        """
        updates = dict(updates)
        legacy_name = updates.pop("vendor_name", None)

        with self._store.unit_of_work() as uow:
            current = uow.vendors.require(vendor_id)
            updates["name"] = updates.get("name") or legacy_name or current.name
            vendor = apply_updates(current, updates, self._clock())
            uow.vendors.put(vendor)
        return vendor

    def delete_vendor(self, vendor_id: str) -> bool:
        """
        Delete a vendor and every transaction referencing it.

        Whether order expense lines keep the vendorId depends on the
        vendor_delete_policy setting.
        """
        policy = self._settings.vendor_delete_policy

        with self._store.unit_of_work() as uow:
            deleted = uow.vendors.delete(vendor_id)
            removed = uow.transactions.delete_where(lambda tx: tx.vendor_id == vendor_id)

            detached = 0
            if policy == VendorDeletePolicy.DETACH_REFERENCES:
                detached = self._detach_vendor(uow, vendor_id)

        if deleted:
            logger.info(
                "vendor_deleted",
                vendor_id=vendor_id,
                transactions_removed=removed,
                expense_lines_detached=detached,
                policy=policy.value,
            )
        return deleted

    def list_transactions(self, vendor_id: Optional[str] = None) -> list[VendorTransaction]:
        with self._store.unit_of_work() as uow:
            return transactions_for_vendor(uow.transactions.all(), vendor_id)

    def set_transaction_status(
        self,
        transaction_id: str,
        status: Union[VendorPaymentStatus, str],
    ) -> Optional[VendorTransaction]:
        """Set a transaction's status; the order's expense line follows."""
        with self._store.unit_of_work() as uow:
            return self._synchronizer.update_transaction_status(
                uow, transaction_id, VendorPaymentStatus(status)
            )

    def toggle_transaction_status(self, transaction_id: str) -> Optional[VendorTransaction]:
        """paid -> pending, anything else -> paid."""
        with self._store.unit_of_work() as uow:
            transaction = uow.transactions.get(transaction_id)
            if transaction is None:
                return None
            new_status = (
                VendorPaymentStatus.PENDING
                if transaction.status == VendorPaymentStatus.PAID
                else VendorPaymentStatus.PAID
            )
            return self._synchronizer.update_transaction_status(uow, transaction_id, new_status)

    def totals(self, vendor_id: str) -> VendorTotals:
        return vendor_totals(self.list_transactions(vendor_id), vendor_id)

    def rebuild_transactions(self) -> int:
        """Regenerate every vendor transaction from the orders."""
        with self._store.unit_of_work() as uow:
            return self._synchronizer.rebuild_all(uow)

    def _detach_vendor(self, uow: UnitOfWork, vendor_id: str) -> int:
        now = self._clock()
        detached = 0
        orders = uow.orders.all()
        for order in orders:
            touched = False
            for expense in order.expenses:
                if expense.vendor_id == vendor_id:
                    expense.vendor_id = None
                    detached += 1
                    touched = True
            if touched:
                order.updated_at = now
        if detached:
            uow.orders.replace_all(orders)
        return detached


class CashbookFlow:
    """General expenses and owner fund movements. Neither touches orders."""

    def __init__(self, store: LedgerStore, clock: Callable[[], datetime] = utcnow):
        self._store = store
        self._clock = clock

    # General expenses

    def list_expenses(self) -> list[GeneralExpense]:
        with self._store.unit_of_work() as uow:
            return uow.expenses.all()

    def add_expense(self, expense: Union[GeneralExpense, dict]) -> GeneralExpense:
        expense = _as_record(GeneralExpense, expense)
        expense.id = new_identifier()
        expense.created_at = self._clock()
        with self._store.unit_of_work() as uow:
            uow.expenses.add(expense)
        return expense

    def update_expense(self, expense_id: str, updates: dict[str, Any]) -> GeneralExpense:
        with self._store.unit_of_work() as uow:
            expense = apply_updates(uow.expenses.require(expense_id), updates, self._clock())
            uow.expenses.put(expense)
        return expense

    def delete_expense(self, expense_id: str) -> bool:
        with self._store.unit_of_work() as uow:
            return uow.expenses.delete(expense_id)

    def expense_total(self) -> Decimal:
        return total_general_expenses(self.list_expenses())

    # Owner funds

    def list_funds(self) -> list[FundTransaction]:
        with self._store.unit_of_work() as uow:
            return uow.funds.all()

    def add_fund_transaction(self, fund: Union[FundTransaction, dict]) -> FundTransaction:
        fund = _as_record(FundTransaction, fund)
        fund.id = new_identifier()
        fund.created_at = self._clock()
        with self._store.unit_of_work() as uow:
            uow.funds.add(fund)
        logger.info("fund_transaction_added", fund_id=fund.id, type=fund.type.value)
        return fund

    def update_fund_transaction(self, fund_id: str, updates: dict[str, Any]) -> FundTransaction:
        with self._store.unit_of_work() as uow:
            fund = apply_updates(uow.funds.require(fund_id), updates, self._clock())
            uow.funds.put(fund)
        return fund

    def delete_fund_transaction(self, fund_id: str) -> bool:
        with self._store.unit_of_work() as uow:
            return uow.funds.delete(fund_id)

    def fund_summary(self) -> FundSummary:
        return fund_summary(self.list_funds())


class ReportFlow:
    """Read-only figures across all collections."""

    def __init__(self, store: LedgerStore, settings: Optional[AppSettings] = None):
        self._store = store
        self._settings = settings or get_settings().app

    def dashboard(self) -> DashboardMetrics:
        with self._store.unit_of_work() as uow:
            orders = uow.orders.all()
            expenses = uow.expenses.all()
            funds = uow.funds.all()
        return dashboard_metrics(
            orders,
            expenses,
            funds,
            recent_limit=self._settings.recent_orders_limit,
        )


class AppComponents(NamedTuple):
    store: LedgerStore
    orders: OrderFlow
    vendors: VendorFlow
    cashbook: CashbookFlow
    reports: ReportFlow
    transfer: DatabaseTransfer


def create_backend(storage_settings: Optional[StorageSettings] = None) -> CollectionBackend:
    """Build the configured storage backend."""
    storage_settings = storage_settings or get_settings().storage
    if storage_settings.backend == StorageBackendName.MEMORY:
        return InMemoryBackend()
    if storage_settings.backend == StorageBackendName.GOOGLE_SHEETS:
        return GoogleSheetsBackend()
    return JsonFileBackend(storage_settings.data_dir)


def create_app_components(
    backend: Optional[CollectionBackend] = None,
    settings: Optional[AppSettings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: Storage to use. If None, the configured backend is built.
        settings: App settings. If None, loaded from the environment.
    """
    settings = settings or get_settings().app
    configure_logging(debug=settings.debug_mode)

    if backend is None:
        try:
            backend = create_backend()
        except Exception as e:
            logger.error("storage_init_failed", error=str(e))
            raise

    store = LedgerStore(backend)

    synchronizer = VendorTransactionSynchronizer()
    return AppComponents(
        store=store,
        orders=OrderFlow(store, synchronizer),
        vendors=VendorFlow(store, synchronizer, settings),
        cashbook=CashbookFlow(store),
        reports=ReportFlow(store, settings),
        transfer=DatabaseTransfer(store, settings),
    )
