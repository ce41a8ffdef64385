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


def _csv(rows: list[str]) -> bytes:
    header = "Date,Pickup Customer Name,Pickup Mobile,AWB,Courier,Weight,Pin,City,State,"
    header += "Base Amount,Royalty,GST,Sale Cost,Customer Name,Customer Mobile,Payment Status,Shipment Status"
    return ("\n".join([header, *rows]) + "\n").encode("utf-8")


ROW_OK = "2024-01-15,Ravi Traders,9876543210,AWB5001,BlueDart,1.5,560001,Bengaluru,Karnataka,100,10,18,150,Asha Rao,9123456780,Paid,Created"
ROW_BAD_WEIGHT = "2024-01-15,Ravi Traders,9876543210,AWB5002,BlueDart,abc,560001,Bengaluru,Karnataka,100,10,18,150,Asha Rao,9123456780,Paid,Created"


def test_preview_then_execute(ready_client) -> None:
    preview = ready_client.post(
        "/api/import/preview",
        files={"file": ("shipments.csv", _csv([ROW_OK, ROW_BAD_WEIGHT]), "text/csv")},
    )

    assert preview.status_code == 200
    data = preview.json()["data"]
    assert data["totalRows"] == 2
    assert data["suggestedMapping"]["Pickup Mobile"] == "pickupCustomerMoNo"
    assert data["suggestedMapping"]["Customer Name"] == "customerName"
    assert data["suggestedMapping"]["Weight"] == "weight"

    executed = ready_client.post(
        "/api/import/execute",
        json={"fileReference": data["fileReference"], "mapping": data["suggestedMapping"]},
        headers={"x-user-email": "ops@example.com"},
    )

    payload = executed.json()
    assert executed.status_code == 200
    assert payload["message"] == "Import completed. 1 successful, 1 failed."
    assert payload["data"]["successfulCount"] == 1
    assert payload["data"]["perRowErrors"][0]["row"] == 2
    assert payload["data"]["perRowErrors"][0]["errors"][0]["field"] == "weight"

    shipments = ready_client.get("/api/shipments").json()["data"]
    assert shipments["total"] == 1
    assert shipments["items"][0]["createdBy"] == "ops@example.com"


def test_preview_rejects_unsupported_file(ready_client) -> None:
    response = ready_client.post(
        "/api/import/preview",
        files={"file": ("shipments.xls", b"legacy-bytes", "application/vnd.ms-excel")},
    )

    assert response.status_code == 415
    assert response.json()["error"]["code"] == "UNSUPPORTED_FILE_TYPE"
    assert response.json()["message"] == "Only CSV and XLSX files are allowed"


def test_preview_without_file(ready_client) -> None:
    response = ready_client.post("/api/import/preview", data={"note": "no file"})

    assert response.status_code == 400
    assert response.json()["message"] == "No file uploaded"


def test_execute_errors(ready_client) -> None:
    missing_reference = ready_client.post("/api/import/execute", json={"mapping": {}})
    missing_file = ready_client.post(
        "/api/import/execute",
        json={"fileReference": "import-gone.csv", "mapping": {}},
    )

    assert missing_reference.status_code == 400
    assert missing_reference.json()["error"]["code"] == "STRUCTURAL_PRECONDITION"
    assert missing_file.status_code == 404
    assert missing_file.json()["message"] == "File not found"


def test_discard_import(ready_client) -> None:
    preview = ready_client.post(
        "/api/import/preview",
        files={"file": ("shipments.csv", _csv([ROW_OK]), "text/csv")},
    ).json()["data"]

    discarded = ready_client.delete(f"/api/import/{preview['fileReference']}")
    executed = ready_client.post(
        "/api/import/execute",
        json={"fileReference": preview["fileReference"], "mapping": preview["suggestedMapping"]},
    )

    assert discarded.status_code == 200
    assert discarded.json()["message"] == "Import discarded"
    assert executed.status_code == 400


def test_template_download(ready_client) -> None:
    csv_response = ready_client.get("/api/import/template", params={"format": "csv"})
    xlsx_response = ready_client.get("/api/import/template", params={"format": "xlsx"})
    bad_format = ready_client.get("/api/import/template", params={"format": "pdf"})

    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert 'filename="import-template.csv"' in csv_response.headers["content-disposition"]
    assert csv_response.text.splitlines()[0].startswith("Date,Pickup Customer Name")
    assert xlsx_response.status_code == 200
    assert xlsx_response.content[:2] == b"PK"
    assert bad_format.status_code == 400


def test_template_without_fields(client) -> None:
    response = client.get("/api/import/template")

    assert response.status_code == 404
