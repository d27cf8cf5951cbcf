"""
List Queries

Search, pagination and display lookups used by the list views.
Everything here is deterministic and works on already-loaded records.
"""

import math
from typing import Optional, Sequence, TypeVar

from shopledger.models.records import (
    ExpenseLine,
    GeneralExpense,
    Order,
    Vendor,
    VendorTransaction,
)
from shopledger.models.reports import Page


T = TypeVar("T")

MISSING_VENDOR_LABEL = "N/A"


def search_orders(orders: Sequence[Order], term: str) -> list[Order]:
    """Orders whose customer name contains term (any case) or phone contains it."""
    term = (term or "").strip()
    if not term:
        return list(orders)
    lowered = term.lower()
    return [
        order for order in orders
        if lowered in order.customer_name.lower() or term in order.customer_phone
    ]


def search_expenses(expenses: Sequence[GeneralExpense], term: str) -> list[GeneralExpense]:
    """General expenses whose description contains term, ignoring case."""
    lowered = (term or "").strip().lower()
    if not lowered:
        return list(expenses)
    return [expense for expense in expenses if lowered in expense.description.lower()]


def transactions_for_vendor(
    transactions: Sequence[VendorTransaction],
    vendor_id: Optional[str] = None,
) -> list[VendorTransaction]:
    """All transactions, or only one vendor's when vendor_id is given."""
    if not vendor_id:
        return list(transactions)
    return [tx for tx in transactions if tx.vendor_id == vendor_id]


def paginate(items: Sequence[T], page: int = 1, page_size: int = 10) -> Page[T]:
    """
    Slice one page out of items.

    Out-of-range page numbers are clamped to the nearest valid page,
    so a list that shrank under the current page still shows something.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / page_size))
    safe_page = min(max(page, 1), total_pages)
    start = (safe_page - 1) * page_size

    return Page(
        items=list(items[start:start + page_size]),
        page=safe_page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )


def vendor_display_name(expense: ExpenseLine, vendors: Sequence[Vendor]) -> str:
    """
    Name to show for an expense line's vendor.

    The current vendor record wins over the name stored on the line. A
    line pointing at a vendor that no longer exists shows as "N/A"
    rather than failing.
    """
    if expense.vendor_id:
        for vendor in vendors:
            if vendor.id == expense.vendor_id:
                return vendor.name or expense.vendor_name or MISSING_VENDOR_LABEL
        return MISSING_VENDOR_LABEL
    return expense.vendor_name or MISSING_VENDOR_LABEL
