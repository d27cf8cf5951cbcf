"""
Configuration Management for Shop Ledger

Every tunable of the ledger (where data lives, list sizes, the export
file name, the vendor delete policy) is read from environment variables
or a .env file through pydantic-settings.

DESIGN DECISION: Settings are split per concern, each with its own env
prefix, so a JSON-file install never needs Google credentials.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackendName(str, Enum):
    """Storage backends the application can be wired to."""
    JSON = "json"
    MEMORY = "memory"
    GOOGLE_SHEETS = "google_sheets"


class VendorDeletePolicy(str, Enum):
    """
    What happens to order expense lines when their vendor is deleted.

    KEEP_REFERENCES leaves the vendorId on the expense line (it then
    displays as "N/A"). DETACH_REFERENCES clears it, which turns the
    line into a vendor-less, implicitly paid expense.
    """
    KEEP_REFERENCES = "keep_references"
    DETACH_REFERENCES = "detach_references"


class StorageSettings(BaseSettings):
    """Where the five collections live."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    backend: StorageBackendName = Field(
        default=StorageBackendName.JSON,
        description="Storage backend to use"
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding one JSON file per collection"
    )


class GoogleSheetsSettings(BaseSettings):
    """Credentials and target spreadsheet for the Sheets backend."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Only warn: the file may be mounted after settings are read."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """Behaviour and display options of the ledger itself."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Listing
    page_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Rows per page in list views"
    )
    recent_orders_limit: int = Field(
        default=5,
        ge=1,
        description="How many orders the dashboard shows as recent"
    )

    # Display
    currency: str = Field(
        default="PKR",
        description="Currency label shown next to amounts"
    )

    # Backups
    export_file_prefix: str = Field(
        default="accounts-backup",
        min_length=1,
        description="File name prefix for database exports"
    )

    # Product decision, see VendorDeletePolicy
    vendor_delete_policy: VendorDeletePolicy = Field(
        default=VendorDeletePolicy.KEEP_REFERENCES,
        description="Whether deleting a vendor clears it from order expense lines"
    )


class Settings(BaseSettings):
    """
    Entry point to all settings groups.

    Each group is built on access, so a missing Google configuration only
    fails when the Sheets backend is actually used.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings root. Call get_settings.cache_clear() after changing
    the environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Check each settings group can be built.

    Returns {group: ok}, plus a "{group}_error" message for each failure.
    Google Sheets is only checked when it is the selected backend.
    """
    results = {}

    settings = get_settings()

    try:
        storage = settings.storage
        results["storage"] = True
    except Exception as e:
        storage = None
        results["storage"] = False
        results["storage_error"] = str(e)

    if storage is not None and storage.backend == StorageBackendName.GOOGLE_SHEETS:
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
