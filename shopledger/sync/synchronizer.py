"""
Vendor Transaction Synchronizer

Keeps the vendor-transactions collection a mirror of the vendor-tagged
expense lines embedded in orders.

DESIGN DECISION: An order's transactions are deleted and regenerated on
every save rather than diffed. Expense lines were not guaranteed stable
ids in older data, so wholesale regeneration is the only approach that is
always correct. The price is that transaction ids change on every save;
their content does not.

The one write that goes the other way is a status change made from the
vendor side (update_transaction_status), which is copied back onto the
expense line inside the same unit of work.

All methods take the caller's UnitOfWork and only stage writes.
"""

from datetime import datetime
from typing import Callable, Optional

from shopledger.log import get_logger
from shopledger.models.records import (
    Order,
    Vendor,
    VendorPaymentStatus,
    VendorTransaction,
    utcnow,
)
from shopledger.storage.repositories import UnitOfWork


logger = get_logger(__name__)


def transaction_id(order_id: str, expense_key: str, now: datetime) -> str:
    """Derived id: order, expense (or line index) and creation time in ms."""
    return f"{order_id}-{expense_key}-{int(now.timestamp() * 1000)}"


def build_transactions(
    order: Order,
    vendors: list[Vendor],
    now: Optional[datetime] = None,
) -> list[VendorTransaction]:
    """
    Project an order's vendor-tagged expense lines into transactions.

    Pure: reads nothing from storage. vendor names come from the line's
    own snapshot first, then from the current vendor list.
    """
    now = now or utcnow()
    vendor_names = {vendor.id: vendor.name for vendor in vendors}

    transactions = []
    for index, expense in enumerate(order.expenses):
        if not expense.has_vendor:
            continue
        transactions.append(
            VendorTransaction(
                id=transaction_id(order.id, expense.id or str(index), now),
                order_id=order.id,
                vendor_id=expense.vendor_id,
                vendor_name=expense.vendor_name or vendor_names.get(expense.vendor_id, ""),
                expense_id=expense.id or None,
                expense_description=expense.description,
                amount=expense.amount,
                status=expense.vendor_payment_status or VendorPaymentStatus.PAID,
                created_at=now,
                updated_at=now,
            )
        )
    return transactions


class VendorTransactionSynchronizer:
    """
    Maintains vendor transactions for orders.

    GUARANTEES (after the caller's unit of work commits):
    - Each vendor-tagged expense line has exactly one transaction
    - Transaction amounts for an order sum to its vendor-tagged line amounts
    - Transaction status equals the line's vendorPaymentStatus
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock

    def sync_for_order(self, uow: UnitOfWork, order: Order) -> list[VendorTransaction]:
        """
        Regenerate the transactions of one order.

        An order without vendor-tagged lines ends up with none.
        """
        if not order.id:
            return []

        removed = self.remove_for_order(uow, order.id)

        created = build_transactions(order, uow.vendors.all(), self._clock())
        if created:
            transactions = uow.transactions.all()
            transactions.extend(created)
            uow.transactions.replace_all(transactions)

        logger.debug(
            "vendor_transactions_synced",
            order_id=order.id,
            removed=removed,
            created=len(created),
        )
        return created

    def remove_for_order(self, uow: UnitOfWork, order_id: str) -> int:
        """Delete every transaction of an order. Returns how many were removed."""
        return uow.transactions.delete_where(lambda tx: tx.order_id == order_id)

    def update_transaction_status(
        self,
        uow: UnitOfWork,
        transaction_id: str,
        status: VendorPaymentStatus,
    ) -> Optional[VendorTransaction]:
        """
        Set a transaction's status and copy it onto the matching expense line.

        The expense line is found by expenseId. Transactions without one
        (legacy records the migration could not link) fall back to
        matching vendor, description and amount, and every line that
        matches is updated.

        Returns:
            The updated transaction, or None if no transaction has that id
        """
        status = VendorPaymentStatus(status)
        transaction = uow.transactions.get(transaction_id)
        if transaction is None:
            return None

        now = self._clock()
        transaction.status = status
        transaction.updated_at = now
        uow.transactions.put(transaction)

        order = uow.orders.get(transaction.order_id)
        if order is None:
            logger.warning(
                "vendor_transaction_order_missing",
                transaction_id=transaction.id,
                order_id=transaction.order_id,
            )
            return transaction

        if not transaction.expense_id:
            logger.warning(
                "legacy_transaction_fallback_match",
                transaction_id=transaction.id,
                order_id=order.id,
            )

        patched = 0
        for expense in order.expenses:
            if transaction.mirrors(expense):
                expense.vendor_payment_status = status
                patched += 1

        if patched:
            order.updated_at = now
            uow.orders.put(order)

        logger.info(
            "vendor_transaction_status_updated",
            transaction_id=transaction.id,
            order_id=order.id,
            status=status.value,
            expense_lines_patched=patched,
        )
        return transaction

    def rebuild_all(self, uow: UnitOfWork) -> int:
        """
        Regenerate the whole transactions collection from orders.

        Corrective pass for data that drifted (e.g. a crash between two
        writes in an older version). Orphaned transactions whose order is
        gone are dropped. Returns the number of transactions afterwards.
        """
        vendors = uow.vendors.all()
        now = self._clock()

        rebuilt = []
        for order in uow.orders.all():
            rebuilt.extend(build_transactions(order, vendors, now))

        previous = uow.transactions.count()
        uow.transactions.replace_all(rebuilt)

        logger.info(
            "vendor_transactions_rebuilt",
            previous_count=previous,
            rebuilt_count=len(rebuilt),
        )
        return len(rebuilt)
