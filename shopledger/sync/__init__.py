"""Vendor transaction synchronization package."""

from shopledger.sync.synchronizer import (
    VendorTransactionSynchronizer,
    build_transactions,
    transaction_id,
)

__all__ = ["VendorTransactionSynchronizer", "build_transactions", "transaction_id"]
