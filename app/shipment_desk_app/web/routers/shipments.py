from __future__ import annotations

from fastapi import APIRouter, Request

from shipment_desk_app.web.core.runtime import get_shipment_service
from shipment_desk_app.web.http.responses import api_success, read_json_object

router = APIRouter(prefix="/api/shipments")


def _actor(request: Request) -> str:
    return str(request.headers.get("x-user-email", "") or "").strip()


@router.get("")
def list_shipments(limit: int = 50, offset: int = 0):
    limit = max(1, min(int(limit or 50), 500))
    records, total = get_shipment_service().list_page(limit=limit, offset=max(0, int(offset or 0)))
    return api_success({"items": [record.to_dict() for record in records], "total": total})


@router.post("")
async def create_shipment(request: Request):
    payload = await read_json_object(request)
    record = get_shipment_service().create(payload, actor=_actor(request))
    return api_success(record.to_dict(), message="Shipment created successfully", status_code=201)


@router.get("/{shipment_id}")
def get_shipment(shipment_id: str):
    return api_success(get_shipment_service().get(shipment_id).to_dict())


@router.put("/{shipment_id}")
async def update_shipment(shipment_id: str, request: Request):
    payload = await read_json_object(request)
    record = get_shipment_service().update(shipment_id, payload, actor=_actor(request))
    return api_success(record.to_dict(), message="Shipment updated successfully")


@router.delete("/{shipment_id}")
def delete_shipment(shipment_id: str):
    get_shipment_service().delete(shipment_id)
    return api_success(message="Shipment deleted successfully")
