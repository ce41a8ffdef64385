from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from shipment_desk_app.core.errors import StructuralPreconditionError
from shipment_desk_app.forms.assembler import assemble
from shipment_desk_app.web.core.runtime import get_field_store
from shipment_desk_app.web.http.responses import api_success, read_json_object

router = APIRouter(prefix="/api/fields-config")


def _definitions(items) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def _bulk_message(results) -> str:
    failed = sum(1 for result in results if not result.ok)
    return f"Field configurations updated. {len(results) - failed} succeeded, {failed} failed."


@router.get("")
def list_fields():
    return api_success(_definitions(get_field_store().list()))


@router.post("")
async def create_field(request: Request):
    payload = await read_json_object(request)
    definition = get_field_store().create(payload)
    return api_success(
        definition.to_dict(),
        message="Field configuration created successfully",
        status_code=201,
    )


@router.get("/types")
def list_field_types():
    return api_success(get_field_store().type_descriptors())


@router.get("/groups")
def list_field_groups():
    return api_success(get_field_store().list_groups())


@router.get("/visible/list")
def list_visible_fields():
    return api_success(_definitions(get_field_store().list_visible()))


@router.put("/bulk/update")
async def bulk_update_fields(request: Request):
    payload = await read_json_object(request)
    items = payload.get("fields")
    if not isinstance(items, list):
        raise StructuralPreconditionError("Fields must be an array")
    results = get_field_store().bulk_update(items)
    return api_success([result.to_dict() for result in results], message=_bulk_message(results))


@router.post("/reorder")
async def reorder_fields(request: Request):
    payload = await read_json_object(request)
    items = payload.get("fieldOrders", payload.get("fields"))
    if not isinstance(items, list):
        raise StructuralPreconditionError("Field orders array is required")
    results = get_field_store().reorder(items)
    return api_success([result.to_dict() for result in results], message=_bulk_message(results))


@router.post("/initialize")
def initialize_fields():
    created, definitions = get_field_store().initialize_defaults()
    if not created:
        return api_success(_definitions(definitions), message="Field configurations already exist")
    return api_success(
        _definitions(definitions),
        message="Default field configurations initialized successfully",
        status_code=201,
    )


@router.post("/form-plan")
async def build_form_plan(request: Request):
    payload = await read_json_object(request)
    values = payload.get("values") or {}
    if not isinstance(values, dict):
        raise StructuralPreconditionError("values must be an object")
    plan = assemble(get_field_store().list(), values)
    return api_success(plan.to_dict())


@router.post("/duplicate/{key}")
async def duplicate_field(key: str, request: Request):
    payload = await read_json_object(request)
    definition = get_field_store().duplicate(
        key,
        str(payload.get("newKey") or ""),
        str(payload.get("newLabel") or ""),
    )
    return api_success(
        definition.to_dict(),
        message="Field configuration duplicated successfully",
        status_code=201,
    )


@router.get("/{key}")
def get_field(key: str):
    return api_success(get_field_store().get(key).to_dict())


@router.put("/{key}")
async def update_field(key: str, request: Request):
    payload = await read_json_object(request)
    definition = get_field_store().update(key, payload)
    return api_success(definition.to_dict(), message="Field configuration updated successfully")


@router.delete("/{key}")
def delete_field(key: str):
    get_field_store().delete(key)
    return api_success(message="Field configuration deleted successfully")
