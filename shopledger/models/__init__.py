"""
Data Models Package

This package contains all Pydantic models used in Shop Ledger.
All data read from or written to storage must conform to these schemas.
"""

from shopledger.models.records import (
    ExpenseLine,
    FundTransaction,
    FundType,
    GeneralExpense,
    LedgerRecord,
    Order,
    Payment,
    TimestampedRecord,
    Vendor,
    VendorPaymentStatus,
    VendorTransaction,
    new_identifier,
    utcnow,
)
from shopledger.models.reports import (
    DashboardMetrics,
    FundSummary,
    OrderFigures,
    Page,
    TransferResult,
    VendorTotals,
)

__all__ = [
    # Records
    "ExpenseLine",
    "FundTransaction",
    "FundType",
    "GeneralExpense",
    "LedgerRecord",
    "Order",
    "Payment",
    "TimestampedRecord",
    "Vendor",
    "VendorPaymentStatus",
    "VendorTransaction",
    "new_identifier",
    "utcnow",
    # Reports
    "DashboardMetrics",
    "FundSummary",
    "OrderFigures",
    "Page",
    "TransferResult",
    "VendorTotals",
]
