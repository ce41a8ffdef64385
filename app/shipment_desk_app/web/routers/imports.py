from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from shipment_desk_app.core.errors import StructuralPreconditionError
from shipment_desk_app.web.core.runtime import get_import_engine
from shipment_desk_app.web.http.responses import api_success, read_json_object

router = APIRouter(prefix="/api/import")


@router.post("/preview")
async def import_preview(request: Request):
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise StructuralPreconditionError("No file uploaded")
    raw_bytes = await upload.read()
    preview = get_import_engine().preview(
        str(upload.filename or ""),
        raw_bytes,
        content_type=str(upload.content_type or ""),
    )
    return api_success(preview.to_dict())


@router.post("/execute")
async def import_execute(request: Request):
    payload = await read_json_object(request)
    file_reference = payload.get("fileReference", payload.get("filename"))
    mapping = payload.get("mapping", payload.get("mappings"))
    outcome = get_import_engine().execute(
        str(file_reference or ""),
        mapping,
        payload.get("defaultValues"),
        actor=str(request.headers.get("x-user-email", "") or "import"),
    )
    return api_success(outcome.to_dict(), message=outcome.message)


@router.get("/template")
def import_template(format: str = "csv"):
    template = get_import_engine().template(format)
    return Response(
        content=template.content,
        media_type=template.media_type,
        headers={"Content-Disposition": f'attachment; filename="{template.file_name}"'},
    )


@router.delete("/{file_reference}")
def import_discard(file_reference: str):
    get_import_engine().discard(file_reference)
    return api_success(message="Import discarded")
