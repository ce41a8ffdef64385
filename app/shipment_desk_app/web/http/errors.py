from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shipment_desk_app.core.env import SHIPDESK_ERROR_INCLUDE_DETAILS, get_env_bool
from shipment_desk_app.core.errors import (
    ConflictError,
    InvalidSchemaError,
    NotFoundError,
    StructuralPreconditionError,
    UnsupportedFileTypeError,
    ValidationFailedError,
)
from shipment_desk_app.infrastructure.db import DataConnectionError, DataExecutionError, DataQueryError

ERROR_CODE_INVALID_SCHEMA = "INVALID_SCHEMA"
ERROR_CODE_CONFLICT = "CONFLICT"
ERROR_CODE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_FILE_TYPE = "UNSUPPORTED_FILE_TYPE"
ERROR_CODE_STRUCTURAL_PRECONDITION = "STRUCTURAL_PRECONDITION"
ERROR_CODE_REQUEST_VALIDATION = "REQUEST_VALIDATION_ERROR"
ERROR_CODE_BAD_REQUEST = "BAD_REQUEST"
ERROR_CODE_METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
ERROR_CODE_DB_CONNECTION = "DB_CONNECTION_ERROR"
ERROR_CODE_DB_QUERY = "DB_QUERY_ERROR"
ERROR_CODE_DB_EXECUTION = "DB_EXECUTION_ERROR"
ERROR_CODE_INTERNAL = "INTERNAL_SERVER_ERROR"

# Details that are part of the error contract rather than diagnostics.
_ALWAYS_DETAILED_CODES = {ERROR_CODE_VALIDATION_FAILED, ERROR_CODE_REQUEST_VALIDATION}


@dataclass(frozen=True)
class ApiErrorSpec:
    status_code: int
    code: str
    message: str
    details: dict[str, Any] | None = None


def request_id_from_request(request: Request) -> str:
    request_id = str(getattr(request.state, "request_id", "") or "").strip()
    if request_id:
        return request_id
    from_header = str(request.headers.get("x-request-id", "")).strip()
    return from_header or "-"


def _include_details() -> bool:
    return get_env_bool(SHIPDESK_ERROR_INCLUDE_DETAILS, default=False)


def build_api_error_payload(
    *,
    code: str,
    message: str,
    request_id: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "success": False,
        "message": str(message),
        "error": {
            "code": str(code),
            "message": str(message),
        },
        "request_id": str(request_id or "-"),
    }
    if details and (code in _ALWAYS_DETAILED_CODES or _include_details()):
        payload["error"]["details"] = details
    return payload


def api_error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    request_id = request_id_from_request(request)
    payload = build_api_error_payload(
        code=code,
        message=message,
        request_id=request_id,
        details=details,
    )
    return JSONResponse(payload, status_code=int(status_code), headers={"X-Request-ID": request_id})


def normalize_exception(exc: Exception) -> ApiErrorSpec:
    if isinstance(exc, ValidationFailedError):
        return ApiErrorSpec(
            status_code=422,
            code=ERROR_CODE_VALIDATION_FAILED,
            message=str(exc) or "Validation failed.",
            details=exc.to_details(),
        )

    if isinstance(exc, InvalidSchemaError):
        return ApiErrorSpec(status_code=400, code=ERROR_CODE_INVALID_SCHEMA, message=str(exc))

    if isinstance(exc, ConflictError):
        return ApiErrorSpec(status_code=409, code=ERROR_CODE_CONFLICT, message=str(exc))

    if isinstance(exc, NotFoundError):
        return ApiErrorSpec(status_code=404, code=ERROR_CODE_NOT_FOUND, message=str(exc) or "Not found.")

    if isinstance(exc, UnsupportedFileTypeError):
        return ApiErrorSpec(status_code=415, code=ERROR_CODE_UNSUPPORTED_FILE_TYPE, message=str(exc))

    if isinstance(exc, StructuralPreconditionError):
        return ApiErrorSpec(status_code=400, code=ERROR_CODE_STRUCTURAL_PRECONDITION, message=str(exc))

    if isinstance(exc, RequestValidationError):
        return ApiErrorSpec(
            status_code=422,
            code=ERROR_CODE_REQUEST_VALIDATION,
            message="Request validation failed. Check field values and try again.",
            details={"errors": exc.errors()},
        )

    if isinstance(exc, DataConnectionError):
        return ApiErrorSpec(
            status_code=503,
            code=ERROR_CODE_DB_CONNECTION,
            message="Database connection is unavailable. Please try again shortly.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, DataQueryError):
        return ApiErrorSpec(
            status_code=500,
            code=ERROR_CODE_DB_QUERY,
            message="Failed to execute the requested query.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, DataExecutionError):
        return ApiErrorSpec(
            status_code=500,
            code=ERROR_CODE_DB_EXECUTION,
            message="Failed to execute the requested update.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, ValueError):
        return ApiErrorSpec(
            status_code=400,
            code=ERROR_CODE_BAD_REQUEST,
            message=str(exc) or "Request parameters are invalid.",
            details={"reason": str(exc)},
        )

    if isinstance(exc, StarletteHTTPException):
        code = ERROR_CODE_INTERNAL
        if exc.status_code == 400:
            code = ERROR_CODE_BAD_REQUEST
        elif exc.status_code == 404:
            code = ERROR_CODE_NOT_FOUND
        elif exc.status_code == 405:
            code = ERROR_CODE_METHOD_NOT_ALLOWED
        elif exc.status_code == 422:
            code = ERROR_CODE_REQUEST_VALIDATION
        return ApiErrorSpec(
            status_code=int(exc.status_code),
            code=code,
            message=str(exc.detail or "HTTP request failed."),
        )

    return ApiErrorSpec(
        status_code=500,
        code=ERROR_CODE_INTERNAL,
        message="An unexpected error occurred. Please contact support if this continues.",
        details={"reason": str(exc), "type": exc.__class__.__name__},
    )
