"""Configuration package."""

from shopledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    StorageBackendName,
    StorageSettings,
    VendorDeletePolicy,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "StorageBackendName",
    "StorageSettings",
    "VendorDeletePolicy",
    "get_settings",
    "validate_all_settings",
]
