from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI, Request

from shipment_desk_app.core.env import SHIPDESK_REQUEST_ID_HEADER_ENABLED, get_env_bool
from shipment_desk_app.infrastructure.local_db_bootstrap import ensure_local_db_ready
from shipment_desk_app.infrastructure.logging import setup_app_logging
from shipment_desk_app.web.core.runtime import get_config, get_sql_client
from shipment_desk_app.web.http.errors import api_error_response, normalize_exception
from shipment_desk_app.web.http.exception_handlers import register_exception_handlers
from shipment_desk_app.web.routers import router as api_router

LOGGER = logging.getLogger(__name__)
PERF_LOGGER = logging.getLogger("shipment_desk_app.perf")


def _incoming_request_id(request: Request) -> str:
    candidate = str(request.headers.get("x-request-id", "")).strip()
    if candidate and len(candidate) <= 128:
        return candidate
    return uuid.uuid4().hex[:12]


def create_app() -> FastAPI:
    setup_app_logging()
    request_id_header_enabled = get_env_bool(SHIPDESK_REQUEST_ID_HEADER_ENABLED, default=True)

    @asynccontextmanager
    async def _app_lifespan(_app: FastAPI):
        ensure_local_db_ready(get_config(), get_sql_client())
        yield

    app = FastAPI(title="Shipment Desk", lifespan=_app_lifespan)

    @app.middleware("http")
    async def _request_context_middleware(request: Request, call_next):
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            spec = normalize_exception(exc)
            LOGGER.exception(
                "Unhandled API error. path=%s method=%s",
                request.url.path,
                request.method,
                extra={
                    "event": "unhandled_api_error",
                    "request_id": request_id,
                    "method": request.method,
                    "path": str(request.url.path),
                },
            )
            response = api_error_response(
                request,
                status_code=spec.status_code,
                code=spec.code,
                message=spec.message,
                details=spec.details,
            )
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        PERF_LOGGER.debug(
            "request_perf id=%s method=%s path=%s status=%s total_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "event": "request_perf",
                "request_id": request_id,
                "status_code": int(response.status_code),
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        if request_id_header_enabled:
            response.headers["X-Request-ID"] = request_id
        return response

    register_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
