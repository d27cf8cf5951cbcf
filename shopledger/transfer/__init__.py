"""Database import/export package."""

from shopledger.transfer.bridge import (
    EXPORT_FORMAT_VERSION,
    SNAPSHOT_KEYS,
    DatabaseTransfer,
    ImportValidationError,
    parse_snapshot,
)

__all__ = [
    "EXPORT_FORMAT_VERSION",
    "SNAPSHOT_KEYS",
    "DatabaseTransfer",
    "ImportValidationError",
    "parse_snapshot",
]
