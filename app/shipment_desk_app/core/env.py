from __future__ import annotations

import os

SHIPDESK_ENV = "SHIPDESK_ENV"
SHIPDESK_LOCAL_DB_PATH = "SHIPDESK_LOCAL_DB_PATH"
SHIPDESK_LOCAL_DB_AUTO_INIT = "SHIPDESK_LOCAL_DB_AUTO_INIT"
SHIPDESK_UPLOAD_DIR = "SHIPDESK_UPLOAD_DIR"
SHIPDESK_IMPORT_MAX_BYTES = "SHIPDESK_IMPORT_MAX_BYTES"
SHIPDESK_IMPORT_SAMPLE_ROWS = "SHIPDESK_IMPORT_SAMPLE_ROWS"
SHIPDESK_IMPORT_JOB_TTL_SEC = "SHIPDESK_IMPORT_JOB_TTL_SEC"
SHIPDESK_LOG_LEVEL = "SHIPDESK_LOG_LEVEL"
SHIPDESK_LOG_JSON = "SHIPDESK_LOG_JSON"
SHIPDESK_LOG_CAPTURE_ROOT = "SHIPDESK_LOG_CAPTURE_ROOT"
SHIPDESK_ERROR_INCLUDE_DETAILS = "SHIPDESK_ERROR_INCLUDE_DETAILS"
SHIPDESK_REQUEST_ID_HEADER_ENABLED = "SHIPDESK_REQUEST_ID_HEADER_ENABLED"
SHIPDESK_SLOW_QUERY_MS = "SHIPDESK_SLOW_QUERY_MS"
SHIPDESK_SQL_TRACE_ENABLED = "SHIPDESK_SQL_TRACE_ENABLED"

TRUE_VALUES = {"1", "true", "yes", "y", "on"}
FALSE_VALUES = {"0", "false", "no", "n", "off"}


def get_env(name: str, default: str = "") -> str:
    return str(os.getenv(name, default) or "").strip()


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    cleaned = raw.strip().lower()
    if cleaned in TRUE_VALUES:
        return True
    if cleaned in FALSE_VALUES:
        return False
    return default


def get_env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = get_env(name, "")
    try:
        value = int(raw) if raw else int(default)
    except ValueError:
        value = int(default)
    if min_value is not None:
        value = max(int(min_value), value)
    return value


def get_env_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = get_env(name, "")
    try:
        value = float(raw) if raw else float(default)
    except ValueError:
        value = float(default)
    if min_value is not None:
        value = max(float(min_value), value)
    return value
