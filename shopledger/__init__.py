"""
Shop Ledger - Source Package

Bookkeeping for a small order-based business: customer orders,
vendor expenses, owner funds and the numbers derived from them.

DESIGN PRINCIPLES:
1. Vendor transactions are derived from orders, never authored directly
2. Profit is accrual-basis, cash in hand is cash-basis
3. One logical operation is one storage commit
4. Storage layer is swappable
"""

__version__ = "1.1.0"
__author__ = "Shop Ledger Team"
