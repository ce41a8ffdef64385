from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shipment_desk_app.core.errors import ShipmentDeskError
from shipment_desk_app.web.http.errors import api_error_response, normalize_exception

LOGGER = logging.getLogger(__name__)


def _respond(request: Request, exc: Exception):
    spec = normalize_exception(exc)
    if spec.status_code >= 500:
        LOGGER.exception(
            "API request failed. code=%s status=%s path=%s method=%s",
            spec.code,
            spec.status_code,
            request.url.path,
            request.method,
            exc_info=exc,
            extra={
                "event": "api_error",
                "request_id": str(getattr(request.state, "request_id", "-")),
                "error_code": spec.code,
                "status_code": int(spec.status_code),
                "method": request.method,
                "path": str(request.url.path),
            },
        )
    else:
        LOGGER.warning(
            "API request rejected. code=%s status=%s path=%s method=%s",
            spec.code,
            spec.status_code,
            request.url.path,
            request.method,
            extra={
                "event": "api_error",
                "request_id": str(getattr(request.state, "request_id", "-")),
                "error_code": spec.code,
                "status_code": int(spec.status_code),
                "method": request.method,
                "path": str(request.url.path),
            },
        )
    return api_error_response(
        request,
        status_code=spec.status_code,
        code=spec.code,
        message=spec.message,
        details=spec.details,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShipmentDeskError)
    async def _domain_error_handler(request: Request, exc: ShipmentDeskError):
        return _respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error_handler(request: Request, exc: RequestValidationError):
        return _respond(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(request: Request, exc: StarletteHTTPException):
        return _respond(request, exc)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        return _respond(request, exc)
