"""
Derived Metrics Engine

DESIGN DECISION: Every figure is computed from the collections on demand.
Nothing derived is stored, so the numbers can never go stale.

ACCOUNTING POLICY:
- Profit is accrual-basis: it counts every incurred expense, paid or not.
- Cash in hand is cash-basis: it counts only money actually paid out.
  Vendor-less expense lines, paid delivery charges and general expenses
  are always paid; vendor-tagged lines count once marked paid.

The two bases are deliberately kept as separate formulas. Figures are
never clamped: an overpaid order has a negative receivable and a
loss-making order a negative profit.
"""

from decimal import Decimal
from typing import Iterable, Optional

from shopledger.models.records import (
    FundTransaction,
    FundType,
    GeneralExpense,
    Order,
    VendorPaymentStatus,
    VendorTransaction,
)
from shopledger.models.reports import (
    DashboardMetrics,
    FundSummary,
    OrderFigures,
    VendorTotals,
)


ZERO = Decimal("0")


def _sum(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


# =============================================================================
# PER ORDER
# =============================================================================

def grand_total(order: Order) -> Decimal:
    """Order total plus delivery charges received from the customer."""
    return order.order_total + order.received_delivery_charges


def total_payments(order: Order) -> Decimal:
    return _sum(payment.amount for payment in order.payments)


def receivable(order: Order) -> Decimal:
    """What the customer still owes on the order."""
    return grand_total(order) - total_payments(order)


def order_expense_total(order: Order) -> Decimal:
    """All expense lines plus paid delivery charges, whatever their payment status."""
    return _sum(expense.amount for expense in order.expenses) + order.paid_delivery_charges


def paid_order_expense_total(order: Order) -> Decimal:
    """Expense lines actually paid out plus paid delivery charges."""
    paid = _sum(expense.amount for expense in order.expenses if expense.is_paid)
    return paid + order.paid_delivery_charges


def order_payables(order: Order) -> Decimal:
    """Vendor-tagged lines not yet paid."""
    return _sum(expense.amount for expense in order.expenses if expense.is_payable)


def order_profit(order: Order) -> Decimal:
    return grand_total(order) - order_expense_total(order)


def order_figures(order: Order) -> OrderFigures:
    return OrderFigures(
        order_id=order.id,
        grand_total=grand_total(order),
        total_payments=total_payments(order),
        receivable=receivable(order),
        expense_total=order_expense_total(order),
        paid_expense_total=paid_order_expense_total(order),
        payables=order_payables(order),
        profit=order_profit(order),
    )


# =============================================================================
# AGGREGATES
# =============================================================================

def total_sales(orders: Iterable[Order]) -> Decimal:
    return _sum(grand_total(order) for order in orders)


def total_receivables(orders: Iterable[Order]) -> Decimal:
    return _sum(receivable(order) for order in orders)


def total_payments_received(orders: Iterable[Order]) -> Decimal:
    return _sum(total_payments(order) for order in orders)


def total_payables(orders: Iterable[Order]) -> Decimal:
    return _sum(order_payables(order) for order in orders)


def total_general_expenses(expenses: Iterable[GeneralExpense]) -> Decimal:
    """General expenses are always treated as paid."""
    return _sum(expense.amount for expense in expenses)


def fund_summary(funds: Iterable[FundTransaction]) -> FundSummary:
    funds = list(funds)
    deposits = _sum(fund.amount for fund in funds if fund.type == FundType.DEPOSIT)
    withdrawals = _sum(fund.amount for fund in funds if fund.type == FundType.WITHDRAW)
    return FundSummary(
        total_deposits=deposits,
        total_withdrawals=withdrawals,
        net_balance=deposits - withdrawals,
    )


def total_profit(orders: Iterable[Order], expenses: Iterable[GeneralExpense]) -> Decimal:
    """Sales minus every incurred expense (order and general)."""
    orders = list(orders)
    all_expenses = _sum(order_expense_total(order) for order in orders)
    return total_sales(orders) - (all_expenses + total_general_expenses(expenses))


def cash_in_hand(
    orders: Iterable[Order],
    expenses: Iterable[GeneralExpense],
    funds: Iterable[FundTransaction],
) -> Decimal:
    """
    Money received minus money paid out.

    payments received + owner deposits - owner withdrawals
    - paid-only order expenses - general expenses
    """
    orders = list(orders)
    funds_total = fund_summary(funds)
    return (
        total_payments_received(orders)
        + funds_total.total_deposits
        - funds_total.total_withdrawals
        - _sum(paid_order_expense_total(order) for order in orders)
        - total_general_expenses(expenses)
    )


def recent_orders(orders: Iterable[Order], limit: int = 5) -> list[Order]:
    """Newest orders by order date; undated orders sort last."""
    dated = sorted(
        orders,
        key=lambda order: (order.order_date is not None, order.order_date or order.created_at.date()),
        reverse=True,
    )
    return dated[:limit]


def dashboard_metrics(
    orders: Iterable[Order],
    expenses: Iterable[GeneralExpense],
    funds: Iterable[FundTransaction],
    recent_limit: int = 5,
) -> DashboardMetrics:
    """All dashboard figures in one pass over the collections."""
    orders = list(orders)
    expenses = list(expenses)
    funds_total = fund_summary(funds)

    sales = total_sales(orders)
    order_expenses = _sum(order_expense_total(order) for order in orders)
    general_expenses = total_general_expenses(expenses)
    paid_order_expenses = _sum(paid_order_expense_total(order) for order in orders)
    payments_received = total_payments_received(orders)

    return DashboardMetrics(
        total_orders=len(orders),
        total_sales=sales,
        total_receivables=total_receivables(orders),
        total_payments_received=payments_received,
        total_order_expenses=order_expenses,
        total_general_expenses=general_expenses,
        total_expenses=order_expenses + general_expenses,
        total_owner_deposits=funds_total.total_deposits,
        total_owner_withdrawals=funds_total.total_withdrawals,
        paid_order_expenses=paid_order_expenses,
        cash_in_hand=(
            payments_received
            + funds_total.total_deposits
            - funds_total.total_withdrawals
            - paid_order_expenses
            - general_expenses
        ),
        total_profit=sales - (order_expenses + general_expenses),
        total_payables=total_payables(orders),
        recent_orders=recent_orders(orders, recent_limit),
    )


def vendor_totals(
    transactions: Iterable[VendorTransaction],
    vendor_id: Optional[str] = None,
) -> VendorTotals:
    """
    Assigned, paid and pending totals over vendor transactions.

    Args:
        transactions: Transactions to total
        vendor_id: If given, only that vendor's transactions count
    """
    selected = [
        tx for tx in transactions
        if vendor_id is None or tx.vendor_id == vendor_id
    ]
    assigned = _sum(tx.amount for tx in selected)
    paid = _sum(tx.amount for tx in selected if tx.status == VendorPaymentStatus.PAID)
    return VendorTotals(
        vendor_id=vendor_id,
        transaction_count=len(selected),
        total_assigned=assigned,
        total_paid=paid,
        total_pending=assigned - paid,
    )
