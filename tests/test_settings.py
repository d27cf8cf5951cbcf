"""Tests for environment-driven configuration."""

import pytest

from shopledger.config import (
    AppSettings,
    StorageBackendName,
    StorageSettings,
    VendorDeletePolicy,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Settings groups and their env prefixes."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_STORAGE_BACKEND", raising=False)
        monkeypatch.delenv("PAGE_SIZE", raising=False)
        monkeypatch.delenv("VENDOR_DELETE_POLICY", raising=False)

        assert StorageSettings().backend == StorageBackendName.JSON
        app = AppSettings()
        assert app.page_size == 10
        assert app.vendor_delete_policy == VendorDeletePolicy.KEEP_REFERENCES

    def test_storage_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LEDGER_STORAGE_DATA_DIR", str(tmp_path))

        storage = get_settings().storage
        assert storage.backend == StorageBackendName.MEMORY
        assert storage.data_dir == tmp_path

    def test_invalid_page_size_rejected(self):
        with pytest.raises(ValueError):
            AppSettings(page_size=0)

    def test_validate_skips_sheets_for_local_backends(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "json")
        status = validate_all_settings()
        assert status["storage"] is True
        assert status["app"] is True
        assert "google_sheets" not in status

    def test_validate_reports_missing_sheets_config(self, monkeypatch):
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "google_sheets")
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        status = validate_all_settings()

        assert status["google_sheets"] is False
        assert status["google_sheets_error"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
