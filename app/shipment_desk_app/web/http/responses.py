from __future__ import annotations

import json
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from shipment_desk_app.core.errors import StructuralPreconditionError
from shipment_desk_app.records.models import json_safe


def api_success(data: Any = None, *, message: str = "", status_code: int = 200) -> JSONResponse:
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = json_safe(data)
    if message:
        payload["message"] = message
    return JSONResponse(payload, status_code=int(status_code))


async def read_json_object(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StructuralPreconditionError("Request body must be valid JSON.") from exc
    if not isinstance(payload, dict):
        raise StructuralPreconditionError("Request body must be a JSON object.")
    return payload
