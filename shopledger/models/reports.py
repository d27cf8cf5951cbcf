"""
Report Models

Read-only results computed from the collections: dashboard figures,
per-order figures, vendor totals, listings and import/export outcomes.
None of these are persisted.
"""

from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shopledger.models.records import Order, SignedAmount, utcnow


T = TypeVar("T")


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderFigures(ReportModel):
    """Money figures for a single order."""

    order_id: str
    grand_total: SignedAmount
    total_payments: SignedAmount
    receivable: SignedAmount = Field(
        ...,
        description="Grand total minus payments; negative when overpaid"
    )
    expense_total: SignedAmount = Field(
        ...,
        description="All expense lines plus paid delivery charges"
    )
    paid_expense_total: SignedAmount = Field(
        ...,
        description="Expense lines actually paid out plus paid delivery charges"
    )
    payables: SignedAmount
    profit: SignedAmount


class DashboardMetrics(ReportModel):
    """
    Business-wide figures.

    CRITICAL: total_profit counts every incurred expense while
    cash_in_hand only counts money actually paid out. The two are
    expected to disagree whenever vendor payables are outstanding.
    """

    total_orders: int = Field(ge=0)
    total_sales: SignedAmount
    total_receivables: SignedAmount
    total_payments_received: SignedAmount
    total_order_expenses: SignedAmount
    total_general_expenses: SignedAmount
    total_expenses: SignedAmount
    total_owner_deposits: SignedAmount
    total_owner_withdrawals: SignedAmount
    paid_order_expenses: SignedAmount
    cash_in_hand: SignedAmount
    total_profit: SignedAmount
    total_payables: SignedAmount
    recent_orders: list[Order] = Field(default_factory=list)


class VendorTotals(ReportModel):
    """Totals over one vendor's transactions."""

    vendor_id: Optional[str] = None
    transaction_count: int = Field(default=0, ge=0)
    total_assigned: SignedAmount = Decimal("0")
    total_paid: SignedAmount = Decimal("0")
    total_pending: SignedAmount = Decimal("0")


class FundSummary(ReportModel):
    """Owner deposits against withdrawals."""

    total_deposits: SignedAmount = Decimal("0")
    total_withdrawals: SignedAmount = Decimal("0")
    net_balance: SignedAmount = Decimal("0")


class Page(BaseModel, Generic[T]):
    """One page of a list view."""

    items: list[T]
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_items: int = Field(ge=0)
    total_pages: int = Field(ge=1)

    @property
    def start_item(self) -> int:
        """1-based position of the first item shown, 0 when empty."""
        if self.total_items == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_item(self) -> int:
        return min(self.page * self.page_size, self.total_items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def describe(self, item_label: str = "items") -> str:
        """Human-readable range, e.g. 'Showing 11-20 of 42 orders'."""
        return f"Showing {self.start_item}-{self.end_item} of {self.total_items} {item_label}"


class TransferResult(BaseModel):
    """
    Outcome of an import or export.

    Failures are reported here rather than raised, so the UI can show
    the message as-is.
    """

    success: bool
    message: str
    file_path: Optional[str] = None
    counts: dict[str, int] = Field(default_factory=dict)
    finished_at: datetime = Field(default_factory=utcnow)
