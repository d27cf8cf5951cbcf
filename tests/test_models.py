"""
Tests for Shop Ledger

Test strategy:
1. Unit tests for individual components (models, metrics, queries)
2. Flow tests against the in-memory backend
3. No real Google API calls in tests (use fakes)
"""

import pytest
from datetime import date
from decimal import Decimal

from shopledger.models.records import (
    ExpenseLine,
    FundTransaction,
    FundType,
    GeneralExpense,
    Order,
    Payment,
    Vendor,
    VendorPaymentStatus,
    VendorTransaction,
)
from shopledger.models.reports import Page, TransferResult


class TestOrderModels:
    """Tests for orders and their embedded lines."""

    def test_order_accepts_camel_case_keys(self):
        """Test that stored camelCase keys populate snake_case fields."""
        order = Order.model_validate({
            "id": "o1",
            "customerName": "Ayesha",
            "orderTotal": 1000,
            "receivedDeliveryCharges": "100",
        })
        assert order.customer_name == "Ayesha"
        assert order.order_total == Decimal("1000")
        assert order.received_delivery_charges == Decimal("100")

    def test_blank_money_is_zero(self):
        """Test that empty form inputs are read as zero."""
        order = Order(order_total="", paid_delivery_charges=None)
        assert order.order_total == Decimal("0")
        assert order.paid_delivery_charges == Decimal("0")

    def test_float_money_keeps_its_decimal_value(self):
        order = Order(order_total=12.5)
        assert order.order_total == Decimal("12.5")

    def test_negative_amount_rejected(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            ExpenseLine(description="Fabric", amount=Decimal("-100"))

    def test_duplicate_expense_line_ids_rejected(self):
        """Test that two lines of one order cannot share an id."""
        with pytest.raises(ValueError):
            Order(expenses=[
                ExpenseLine(id="e1", description="Stitching", amount=200, vendor_id="v1"),
                ExpenseLine(id="e1", description="Buttons", amount=300, vendor_id="v1"),
            ])

    def test_duplicate_payment_ids_rejected(self):
        with pytest.raises(ValueError):
            Order(payments=[Payment(id="p1", amount=100), Payment(id="p1", amount=200)])

    def test_missing_lists_default_to_empty(self):
        order = Order.model_validate({"id": "o1", "expenses": None, "payments": None})
        assert order.expenses == []
        assert order.payments == []

    def test_numeric_id_becomes_string(self):
        vendor = Vendor.model_validate({"id": 1700000000000, "name": "Tailor"})
        assert vendor.id == "1700000000000"

    def test_whitespace_is_stripped(self):
        vendor = Vendor(name="  Rashid Tailors  ")
        assert vendor.name == "Rashid Tailors"

    def test_timestamp_in_date_field_is_cut_to_date(self):
        payment = Payment.model_validate({"date": "2024-01-05T10:30:00.000Z", "amount": 500})
        assert payment.date == date(2024, 1, 5)

    def test_blank_date_is_none(self):
        assert GeneralExpense(description="Rent", amount=1, date="").date is None

    def test_to_record_uses_camel_case_and_json_numbers(self):
        """Test the on-disk layout of a record."""
        order = Order(id="o1", order_total=Decimal("1000"), order_date="2024-02-10")
        record = order.to_record()

        assert record["id"] == "o1"
        assert record["orderTotal"] == 1000
        assert isinstance(record["orderTotal"], int)
        assert record["orderDate"] == "2024-02-10"
        assert record["isCompleted"] is False
        assert "order_total" not in record

    def test_fractional_money_serializes_as_float(self):
        record = Order(order_total=Decimal("99.5")).to_record()
        assert record["orderTotal"] == 99.5


class TestExpenseLines:
    """Tests for expense line payment semantics."""

    def test_vendorless_line_is_paid(self):
        line = ExpenseLine(description="Thread", amount=50)
        assert not line.has_vendor
        assert line.is_paid
        assert not line.is_payable

    def test_blank_vendor_id_means_no_vendor(self):
        line = ExpenseLine(description="Thread", amount=50, vendor_id="")
        assert line.vendor_id is None
        assert not line.has_vendor

    def test_pending_vendor_line_is_payable(self):
        line = ExpenseLine(
            description="Stitching",
            amount=200,
            vendor_id="v1",
            vendor_payment_status="pending",
        )
        assert line.is_payable
        assert not line.is_paid

    def test_missing_status_defaults_to_paid(self):
        line = ExpenseLine.model_validate(
            {"description": "Stitching", "amount": 200, "vendorId": "v1", "vendorPaymentStatus": ""}
        )
        assert line.vendor_payment_status == VendorPaymentStatus.PAID

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            ExpenseLine(vendor_id="v1", vendor_payment_status="overdue")


class TestVendorTransaction:
    """Tests for matching transactions to expense lines."""

    def make_transaction(self, **overrides):
        data = {
            "order_id": "o1",
            "vendor_id": "v1",
            "expense_description": "Stitching",
            "amount": 200,
        }
        data.update(overrides)
        return VendorTransaction(**data)

    def test_mirrors_by_expense_id(self):
        tx = self.make_transaction(expense_id="e1")
        same = ExpenseLine(id="e1", description="Changed", amount=999, vendor_id="v1")
        other = ExpenseLine(id="e2", description="Stitching", amount=200, vendor_id="v1")

        assert tx.mirrors(same)
        assert not tx.mirrors(other)

    def test_mirrors_structurally_without_expense_id(self):
        tx = self.make_transaction()
        assert tx.expense_id is None
        assert tx.mirrors(ExpenseLine(description="Stitching", amount=200, vendor_id="v1"))
        assert not tx.mirrors(ExpenseLine(description="Stitching", amount=201, vendor_id="v1"))
        assert not tx.mirrors(ExpenseLine(description="Stitching", amount=200, vendor_id="v2"))

    def test_order_and_vendor_required(self):
        with pytest.raises(ValueError):
            VendorTransaction(order_id="", vendor_id="v1")


class TestCashbookModels:
    """Tests for general expenses and owner funds."""

    def test_fund_type_parsed(self):
        fund = FundTransaction(type="deposit", amount=1000)
        assert fund.type == FundType.DEPOSIT

    def test_fund_type_required(self):
        with pytest.raises(ValueError):
            FundTransaction.model_validate({"amount": 1000})


class TestReportModels:
    """Tests for page and transfer result models."""

    def test_page_bounds(self):
        page = Page(items=[1, 2], page=2, page_size=10, total_items=12, total_pages=2)
        assert page.start_item == 11
        assert page.end_item == 12
        assert page.has_previous
        assert not page.has_next
        assert page.describe("orders") == "Showing 11-12 of 12 orders"

    def test_empty_page(self):
        page = Page(items=[], page=1, page_size=10, total_items=0, total_pages=1)
        assert page.start_item == 0
        assert page.end_item == 0

    def test_transfer_result_defaults(self):
        result = TransferResult(success=False, message="Failed")
        assert result.counts == {}
        assert result.file_path is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
