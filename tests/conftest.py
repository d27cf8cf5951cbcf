"""Shared fixtures: in-memory storage and a fixed clock."""

from datetime import datetime, timezone

import pytest

from shopledger.config.settings import AppSettings
from shopledger.orchestrator import create_app_components
from shopledger.storage import InMemoryBackend, LedgerStore
from shopledger.sync import VendorTransactionSynchronizer


FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return LedgerStore(backend)


@pytest.fixture
def synchronizer():
    return VendorTransactionSynchronizer(clock=fixed_clock)


@pytest.fixture
def app_settings():
    return AppSettings(
        page_size=10,
        recent_orders_limit=5,
        export_file_prefix="accounts-backup",
    )


@pytest.fixture
def components(backend, app_settings):
    return create_app_components(backend=backend, settings=app_settings)


@pytest.fixture
def order_data():
    """Factory for raw order fields with sensible defaults, Python field names."""

    def make(**overrides) -> dict:
        data = {
            "customer_name": "Ayesha Khan",
            "customer_phone": "0300-1234567",
            "order_description": "Bridal dress",
            "order_date": "2024-02-10",
            "order_total": 1000,
            "received_delivery_charges": 100,
            "paid_delivery_charges": 0,
            "expenses": [],
            "payments": [],
        }
        data.update(overrides)
        return data

    return make
