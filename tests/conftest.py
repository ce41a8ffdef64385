from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.infrastructure.local_db_bootstrap import ensure_local_db_ready
from shipment_desk_app.web.core.runtime import (
    clear_runtime_caches,
    get_config,
    get_field_store,
    get_import_engine,
    get_shipment_service,
    get_sql_client,
)


@pytest.fixture()
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    monkeypatch.setenv("SHIPDESK_ENV", "test")
    monkeypatch.setenv("SHIPDESK_LOCAL_DB_PATH", str(tmp_path / "shipment_desk_test.db"))
    monkeypatch.setenv("SHIPDESK_UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("SHIPDESK_LOCAL_DB_AUTO_INIT", "true")
    clear_runtime_caches()
    yield tmp_path
    clear_runtime_caches()


@pytest.fixture()
def field_store(isolated_env: Path):
    ensure_local_db_ready(get_config(), get_sql_client())
    return get_field_store()


@pytest.fixture()
def seeded_store(field_store):
    field_store.initialize_defaults()
    return field_store


@pytest.fixture()
def shipment_service(seeded_store):
    return get_shipment_service()


@pytest.fixture()
def import_engine(seeded_store):
    return get_import_engine()


@pytest.fixture()
def client(isolated_env: Path):
    from shipment_desk_app.web.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture()
def shipment_values() -> dict[str, str]:
    return {
        "date": "2024-01-15",
        "pickupCustomerName": "Ravi Traders",
        "pickupCustomerMoNo": "9876543210",
        "awb": "AWB1001",
        "courierPartner": "BlueDart",
        "weight": "1.5",
        "pinCode": "560001",
        "city": "Bengaluru",
        "state": "Karnataka",
        "baseAmount": "100",
        "royaltyMargin": "10",
        "gst": "18",
        "saleCost": "150",
        "customerName": "Asha Rao",
        "customerMoNo": "9123456780",
        "paymentStatus": "Paid",
        "shipmentStatus": "Created",
    }
