"""List query package."""

from shopledger.queries.filters import (
    MISSING_VENDOR_LABEL,
    paginate,
    search_expenses,
    search_orders,
    transactions_for_vendor,
    vendor_display_name,
)

__all__ = [
    "MISSING_VENDOR_LABEL",
    "paginate",
    "search_expenses",
    "search_orders",
    "transactions_for_vendor",
    "vendor_display_name",
]
