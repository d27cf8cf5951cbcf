"""Derived metrics package."""

from shopledger.metrics.engine import (
    cash_in_hand,
    dashboard_metrics,
    fund_summary,
    grand_total,
    order_expense_total,
    order_figures,
    order_payables,
    order_profit,
    paid_order_expense_total,
    receivable,
    recent_orders,
    total_general_expenses,
    total_payables,
    total_payments,
    total_payments_received,
    total_profit,
    total_receivables,
    total_sales,
    vendor_totals,
)

__all__ = [
    "cash_in_hand",
    "dashboard_metrics",
    "fund_summary",
    "grand_total",
    "order_expense_total",
    "order_figures",
    "order_payables",
    "order_profit",
    "paid_order_expense_total",
    "receivable",
    "recent_orders",
    "total_general_expenses",
    "total_payables",
    "total_payments",
    "total_payments_received",
    "total_profit",
    "total_receivables",
    "total_sales",
    "vendor_totals",
]
