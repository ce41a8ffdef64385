from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))


@pytest.fixture()
def ready_client(client):
    assert client.post("/api/fields-config/initialize").status_code == 201
    return client


def test_create_and_fetch_shipment(ready_client, shipment_values) -> None:
    created = ready_client.post(
        "/api/shipments",
        json=dict(shipment_values, vehicleNo="KA01AB1234"),
        headers={"x-user-email": "ops@example.com"},
    )

    assert created.status_code == 201
    data = created.json()["data"]
    assert data["awb"] == "AWB1001"
    assert data["weight"] == 1.5
    assert data["grandTotal"] == 128.0
    assert data["additionalFields"] == {"vehicleNo": "KA01AB1234"}
    assert data["createdBy"] == "ops@example.com"

    fetched = ready_client.get(f"/api/shipments/{data['id']}")
    assert fetched.json()["data"]["date"] == "2024-01-15"


def test_validation_errors_are_listed(ready_client, shipment_values) -> None:
    response = ready_client.post("/api/shipments", json=dict(shipment_values, pinCode="12", awb=""))

    payload = response.json()
    assert response.status_code == 422
    assert payload["error"]["code"] == "VALIDATION_FAILED"
    errors = {item["field"]: item for item in payload["error"]["details"]["errors"]}
    assert errors["awb"]["code"] == "MISSING_REQUIRED"
    assert errors["pinCode"]["message"] == "Pin code must be exactly 6 digits"


def test_duplicate_awb_conflict(ready_client, shipment_values) -> None:
    ready_client.post("/api/shipments", json=shipment_values)

    response = ready_client.post("/api/shipments", json=shipment_values)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_update_list_and_delete(ready_client, shipment_values) -> None:
    created = ready_client.post("/api/shipments", json=shipment_values).json()["data"]
    ready_client.post("/api/shipments", json=dict(shipment_values, awb="AWB1002"))

    updated = ready_client.put(f"/api/shipments/{created['id']}", json={"shipmentStatus": "Delivered"})
    listed = ready_client.get("/api/shipments", params={"limit": 1})
    deleted = ready_client.delete(f"/api/shipments/{created['id']}")
    missing = ready_client.get(f"/api/shipments/{created['id']}")

    assert updated.status_code == 200
    assert updated.json()["data"]["shipmentStatus"] == "Delivered"
    assert listed.json()["data"]["total"] == 2
    assert len(listed.json()["data"]["items"]) == 1
    assert deleted.status_code == 200
    assert missing.status_code == 404
