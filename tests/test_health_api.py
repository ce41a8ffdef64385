from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.web.routers import health as health_router


class _DownClient:
    def ping(self) -> bool:
        return False


def test_health_reports_database_state(client) -> None:
    response = client.get("/api/health", headers={"x-request-id": "req-123"})

    payload = response.json()
    assert response.status_code == 200
    assert payload["success"] is True
    assert payload["data"] == {"status": "ok", "env": "test", "database": "reachable"}
    assert response.headers["X-Request-ID"] == "req-123"


def test_health_degrades_when_database_unreachable(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(health_router, "get_sql_client", lambda: _DownClient())

    response = client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["data"]["database"] == "unreachable"


def test_unknown_route_uses_error_envelope(client) -> None:
    response = client.get("/api/does-not-exist")

    payload = response.json()
    assert response.status_code == 404
    assert payload["success"] is False
    assert payload["error"]["code"] == "NOT_FOUND"
    assert payload["request_id"] == response.headers["X-Request-ID"]
