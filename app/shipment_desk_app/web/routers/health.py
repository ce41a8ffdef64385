from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from shipment_desk_app.web.core.runtime import get_config, get_sql_client

router = APIRouter(prefix="/api")


@router.get("/health")
def api_health():
    config = get_config()
    database_ok = get_sql_client().ping()
    payload = {
        "success": database_ok,
        "data": {
            "status": "ok" if database_ok else "degraded",
            "env": config.env,
            "database": "reachable" if database_ok else "unreachable",
        },
    }
    if not database_ok:
        payload["message"] = "Database connection check failed."
    return JSONResponse(payload, status_code=200 if database_ok else 503)
