"""
Load-Time Migration

Brings stored data into the canonical schema once, when a store is opened
(and again for every imported file). After it runs:

1. Vendors carry `name` only (the legacy `vendorName` alias is folded in)
2. Every expense line and payment has an id, unique within its order
3. Every vendor-tagged expense line has an explicit vendorPaymentStatus
4. Legacy vendor transactions without an expenseId are linked to the
   expense line they mirror, matched on vendor, description and amount
5. Every record has passed model validation

IMPORTANT: Step 4 cannot tell identical lines apart. When more than one
line matches, the first unclaimed one is linked and the case is counted
in `transactions_ambiguous` and logged, so it can be reviewed by hand.

Running the migration on already-canonical data changes nothing.
"""

import copy
from typing import Any

from pydantic import BaseModel, ValidationError

from shopledger.log import get_logger
from shopledger.models.records import (
    FundTransaction,
    GeneralExpense,
    LedgerRecord,
    Order,
    Vendor,
    VendorTransaction,
)
from shopledger.storage.interface import ALL_COLLECTIONS, Collection, MigrationError


MODELS: dict[Collection, type[LedgerRecord]] = {
    Collection.ORDERS: Order,
    Collection.EXPENSES: GeneralExpense,
    Collection.VENDORS: Vendor,
    Collection.TRANSACTIONS: VendorTransaction,
    Collection.FUNDS: FundTransaction,
}


logger = get_logger(__name__)


class MigrationReport(BaseModel):
    """What a migration run changed."""

    changed: bool = False
    vendors_renamed: int = 0
    expense_ids_backfilled: int = 0
    payment_ids_backfilled: int = 0
    statuses_defaulted: int = 0
    transactions_linked: int = 0
    transactions_ambiguous: int = 0
    transactions_unmatched: int = 0


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _backfill_id(order_id: str, kind: str, index: int, taken: set[str]) -> str:
    candidate = f"{order_id}-{kind}-{index}"
    suffix = 1
    while candidate in taken:
        candidate = f"{order_id}-{kind}-{index}-{suffix}"
        suffix += 1
    return candidate


def _migrate_vendor(raw: dict, report: MigrationReport) -> dict:
    vendor = dict(raw)
    legacy_name = vendor.pop("vendorName", None)
    if _is_blank(vendor.get("name")) and not _is_blank(legacy_name):
        vendor["name"] = legacy_name
        report.vendors_renamed += 1
    return vendor


def _migrate_order(raw: dict, report: MigrationReport) -> dict:
    order = copy.deepcopy(raw)
    order_id = str(order.get("id", ""))

    expenses = order.get("expenses") or []
    taken: set[str] = set()
    for index, expense in enumerate(expenses):
        if not isinstance(expense, dict):
            raise MigrationError(f"Invalid expense line #{index + 1} in order {order_id}")
        expense_id = expense.get("id")
        if _is_blank(expense_id) or str(expense_id) in taken:
            expense["id"] = _backfill_id(order_id, "exp", index, taken)
            report.expense_ids_backfilled += 1
        taken.add(str(expense["id"]))

        if not _is_blank(expense.get("vendorId")) and _is_blank(expense.get("vendorPaymentStatus")):
            expense["vendorPaymentStatus"] = "paid"
            report.statuses_defaulted += 1
    order["expenses"] = expenses

    payments = order.get("payments") or []
    taken = set()
    for index, payment in enumerate(payments):
        if not isinstance(payment, dict):
            raise MigrationError(f"Invalid payment #{index + 1} in order {order_id}")
        payment_id = payment.get("id")
        if _is_blank(payment_id) or str(payment_id) in taken:
            payment["id"] = _backfill_id(order_id, "pay", index, taken)
            report.payment_ids_backfilled += 1
        taken.add(str(payment["id"]))
    order["payments"] = payments

    return order


def _validate(collection: Collection, raw_records: list[dict]) -> list[LedgerRecord]:
    model = MODELS[collection]
    validated = []
    for position, raw in enumerate(raw_records):
        if not isinstance(raw, dict):
            raise MigrationError(
                f"Invalid record #{position + 1} in {collection.value}: not an object"
            )
        try:
            validated.append(model.model_validate(raw))
        except ValidationError as e:
            raise MigrationError(
                f"Invalid record #{position + 1} in {collection.value}: {e}"
            )
    return validated


def _link_legacy_transactions(
    orders: list[Order],
    transactions: list[VendorTransaction],
    report: MigrationReport,
) -> None:
    orders_by_id = {order.id: order for order in orders}

    claimed: dict[str, set[str]] = {}
    for tx in transactions:
        if tx.expense_id:
            claimed.setdefault(tx.order_id, set()).add(tx.expense_id)

    for tx in transactions:
        if tx.expense_id:
            continue

        order = orders_by_id.get(tx.order_id)
        taken = claimed.setdefault(tx.order_id, set())
        candidates = [
            expense
            for expense in (order.expenses if order else [])
            if expense.id not in taken and tx.matches_structurally(expense)
        ]

        if not candidates:
            report.transactions_unmatched += 1
            logger.warning(
                "legacy_transaction_unmatched",
                transaction_id=tx.id,
                order_id=tx.order_id,
            )
            continue

        if len(candidates) > 1:
            report.transactions_ambiguous += 1
            logger.warning(
                "legacy_transaction_ambiguous",
                transaction_id=tx.id,
                order_id=tx.order_id,
                candidate_expense_ids=[expense.id for expense in candidates],
            )

        tx.expense_id = candidates[0].id
        taken.add(tx.expense_id)
        report.transactions_linked += 1


def migrate_collections(
    raw: dict[Collection, list[dict]],
) -> tuple[dict[Collection, list[dict]], MigrationReport]:
    """
    Canonicalize all five collections.

    Args:
        raw: Records as loaded from storage; missing collections count as empty

    Returns:
        (canonical_collections, report)

    Raises:
        MigrationError: If a record cannot be made valid
    """
    report = MigrationReport()
    source = {collection: list(raw.get(collection) or []) for collection in ALL_COLLECTIONS}

    for collection in ALL_COLLECTIONS:
        for position, record in enumerate(source[collection]):
            if not isinstance(record, dict):
                raise MigrationError(
                    f"Invalid record #{position + 1} in {collection.value}: not an object"
                )

    prepared = dict(source)
    prepared[Collection.VENDORS] = [
        _migrate_vendor(vendor, report) for vendor in source[Collection.VENDORS]
    ]
    prepared[Collection.ORDERS] = [
        _migrate_order(order, report) for order in source[Collection.ORDERS]
    ]

    validated = {
        collection: _validate(collection, prepared[collection])
        for collection in ALL_COLLECTIONS
    }
    _link_legacy_transactions(
        validated[Collection.ORDERS],
        validated[Collection.TRANSACTIONS],
        report,
    )

    canonical = {
        collection: [record.to_record() for record in records]
        for collection, records in validated.items()
    }
    report.changed = canonical != source

    if report.changed:
        logger.info("collections_migrated", **report.model_dump(exclude={"changed"}))

    return canonical, report
