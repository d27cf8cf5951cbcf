"""Tests for the vendor transaction synchronizer."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal

from shopledger.models.records import (
    ExpenseLine,
    Order,
    Vendor,
    VendorPaymentStatus,
    VendorTransaction,
)
from shopledger.sync import build_transactions, transaction_id


FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def vendor_line(expense_id, vendor_id="v1", amount=200, status="pending", description="Stitching"):
    return ExpenseLine(
        id=expense_id,
        description=description,
        amount=amount,
        vendor_id=vendor_id,
        vendor_payment_status=status,
    )


def content(transactions):
    """Transaction fields that must survive regeneration (ids and times may change)."""
    return sorted(
        (tx.order_id, tx.vendor_id, tx.expense_id, tx.expense_description, tx.amount, tx.status)
        for tx in transactions
    )


@pytest.fixture
def seeded(store):
    with store.unit_of_work() as uow:
        uow.vendors.add(Vendor(id="v1", name="Rashid Tailors"))
        uow.vendors.add(Vendor(id="v2", name="Karachi Fabrics"))
    return store


class TestBuildTransactions:
    """Projection of expense lines into transactions."""

    def test_order_without_vendor_lines_has_none(self):
        order = Order(id="o1", expenses=[ExpenseLine(description="Thread", amount=50)])
        assert build_transactions(order, [], FIXED_NOW) == []

    def test_one_transaction_per_vendor_line(self):
        order = Order(
            id="o1",
            expenses=[
                vendor_line("e1"),
                ExpenseLine(id="e2", description="Thread", amount=50),
                vendor_line("e3", vendor_id="v2", amount=300, status="paid"),
            ],
        )
        vendors = [Vendor(id="v1", name="Rashid Tailors"), Vendor(id="v2", name="Karachi Fabrics")]

        transactions = build_transactions(order, vendors, FIXED_NOW)

        assert [tx.expense_id for tx in transactions] == ["e1", "e3"]
        assert transactions[0].vendor_name == "Rashid Tailors"
        assert transactions[0].status == VendorPaymentStatus.PENDING
        assert transactions[1].status == VendorPaymentStatus.PAID
        assert sum(tx.amount for tx in transactions) == Decimal("500")

    def test_transaction_id_format(self):
        ms = int(FIXED_NOW.timestamp() * 1000)
        assert transaction_id("o1", "e1", FIXED_NOW) == f"o1-e1-{ms}"


class TestSyncForOrder:
    """Regeneration inside a unit of work."""

    def test_sync_creates_and_replaces(self, seeded, synchronizer):
        order = Order(id="o1", expenses=[vendor_line("e1"), vendor_line("e2", amount=100)])
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            synchronizer.sync_for_order(uow, order)

        with seeded.unit_of_work() as uow:
            first = uow.transactions.all()
            order.expenses = [vendor_line("e1", amount=250)]
            uow.orders.put(order)
            synchronizer.sync_for_order(uow, order)

        with seeded.unit_of_work() as uow:
            after = uow.transactions.all()

        assert len(first) == 2
        assert len(after) == 1
        assert after[0].amount == Decimal("250")

    def test_sync_is_idempotent_in_content(self, seeded, synchronizer):
        order = Order(id="o1", expenses=[vendor_line("e1"), vendor_line("e2", vendor_id="v2")])
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            synchronizer.sync_for_order(uow, order)
            once = uow.transactions.all()
            synchronizer.sync_for_order(uow, order)
            twice = uow.transactions.all()

        assert content(once) == content(twice)
        assert len(twice) == 2

    def test_sum_matches_vendor_lines_per_order(self, seeded, synchronizer):
        orders = [
            Order(id="o1", expenses=[vendor_line("e1", amount=120), vendor_line("e2", amount=80)]),
            Order(id="o2", expenses=[vendor_line("e1", vendor_id="v2", amount=45),
                                     ExpenseLine(description="Tape", amount=10)]),
        ]
        with seeded.unit_of_work() as uow:
            for order in orders:
                uow.orders.add(order)
                synchronizer.sync_for_order(uow, order)

        with seeded.unit_of_work() as uow:
            transactions = uow.transactions.all()

        for order in orders:
            expected = sum(e.amount for e in order.vendor_expenses)
            actual = sum(tx.amount for tx in transactions if tx.order_id == order.id)
            assert actual == expected

    def test_remove_for_order_leaves_others(self, seeded, synchronizer):
        first = Order(id="o1", expenses=[vendor_line("e1"), vendor_line("e2"), vendor_line("e3")])
        second = Order(id="o2", expenses=[vendor_line("e1")])
        with seeded.unit_of_work() as uow:
            for order in (first, second):
                uow.orders.add(order)
                synchronizer.sync_for_order(uow, order)

        with seeded.unit_of_work() as uow:
            removed = synchronizer.remove_for_order(uow, "o1")

        with seeded.unit_of_work() as uow:
            remaining = uow.transactions.all()

        assert removed == 3
        assert [tx.order_id for tx in remaining] == ["o2"]


class TestStatusWriteBack:
    """Status changes made from the vendor side reach the order."""

    def test_status_copied_to_expense_line(self, seeded, synchronizer):
        order = Order(id="o1", expenses=[vendor_line("e1"), vendor_line("e2")])
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            created = synchronizer.sync_for_order(uow, order)

        with seeded.unit_of_work() as uow:
            updated = synchronizer.update_transaction_status(
                uow, created[0].id, VendorPaymentStatus.PAID
            )

        with seeded.unit_of_work() as uow:
            stored_order = uow.orders.require("o1")
            stored_tx = uow.transactions.require(created[0].id)

        assert updated.status == VendorPaymentStatus.PAID
        assert stored_tx.status == VendorPaymentStatus.PAID
        assert stored_order.expenses[0].vendor_payment_status == VendorPaymentStatus.PAID
        assert stored_order.expenses[1].vendor_payment_status == VendorPaymentStatus.PENDING

    def test_unknown_transaction_returns_none(self, seeded, synchronizer):
        with seeded.unit_of_work() as uow:
            assert synchronizer.update_transaction_status(uow, "missing", "paid") is None

    def test_legacy_transaction_falls_back_to_structural_match(self, seeded, synchronizer):
        """Without an expense id every identical line is patched."""
        order = Order(
            id="o1",
            expenses=[
                vendor_line("e1"),
                vendor_line("e2"),
                vendor_line("e3", description="Embroidery"),
            ],
        )
        legacy = VendorTransaction(
            id="legacy-1",
            order_id="o1",
            vendor_id="v1",
            expense_description="Stitching",
            amount=200,
            status="pending",
        )
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            uow.transactions.add(legacy)

        with seeded.unit_of_work() as uow:
            synchronizer.update_transaction_status(uow, "legacy-1", VendorPaymentStatus.PAID)

        with seeded.unit_of_work() as uow:
            statuses = [e.vendor_payment_status for e in uow.orders.require("o1").expenses]

        assert statuses == [
            VendorPaymentStatus.PAID,
            VendorPaymentStatus.PAID,
            VendorPaymentStatus.PENDING,
        ]

    def test_unmatched_transaction_leaves_order_untouched(self, seeded, synchronizer):
        order = Order(id="o1", expenses=[vendor_line("e1")])
        stale = VendorTransaction(id="t1", order_id="o1", vendor_id="v1", expense_id="e9")
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            uow.transactions.add(stale)

        with seeded.unit_of_work() as uow:
            updated = synchronizer.update_transaction_status(uow, "t1", VendorPaymentStatus.PAID)

        with seeded.unit_of_work() as uow:
            stored_order = uow.orders.require("o1")

        assert updated.status == VendorPaymentStatus.PAID
        assert stored_order.updated_at is None
        assert stored_order.expenses[0].vendor_payment_status == VendorPaymentStatus.PENDING

    def test_transaction_without_order_is_still_updated(self, seeded, synchronizer):
        orphan = VendorTransaction(id="t1", order_id="gone", vendor_id="v1", expense_id="e1")
        with seeded.unit_of_work() as uow:
            uow.transactions.add(orphan)

        with seeded.unit_of_work() as uow:
            updated = synchronizer.update_transaction_status(uow, "t1", "pending")

        assert updated.status == VendorPaymentStatus.PENDING


class TestRebuildAll:
    """Corrective full rescan."""

    def test_rebuild_restores_mirror_and_drops_orphans(self, seeded, synchronizer):
        order = Order(id="o1", expenses=[vendor_line("e1"), vendor_line("e2", status="paid")])
        with seeded.unit_of_work() as uow:
            uow.orders.add(order)
            uow.transactions.add(VendorTransaction(id="stale", order_id="deleted", vendor_id="v1"))

        with seeded.unit_of_work() as uow:
            count = synchronizer.rebuild_all(uow)

        with seeded.unit_of_work() as uow:
            transactions = uow.transactions.all()

        assert count == 2
        assert {tx.order_id for tx in transactions} == {"o1"}
        assert content(transactions) == content(build_transactions(order, [], FIXED_NOW))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
