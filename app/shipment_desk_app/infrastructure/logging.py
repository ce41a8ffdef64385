from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shipment_desk_app.core.env import (
    SHIPDESK_LOG_CAPTURE_ROOT,
    SHIPDESK_LOG_JSON,
    SHIPDESK_LOG_LEVEL,
    get_env,
    get_env_bool,
)

_LOGGING_CONFIGURED = False
_RESERVED_LOG_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


_CONTEXT_FIELDS = ("event", "request_id", "field_key", "shipment_id", "file_reference")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Split a record's ``extra=`` values into the shared context keys and everything else."""
    context: dict[str, Any] = {}
    for name in _CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None and not (isinstance(value, str) and not value):
            context[name] = value
    details = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_LOG_RECORD_FIELDS and key not in _CONTEXT_FIELDS and not key.startswith("_")
    }
    if details:
        context["details"] = details
    return context


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_context(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


class _TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        context.pop("details", None)
        if not context:
            return line
        suffix = " ".join(f"{name}={value}" for name, value in context.items())
        head, _, tail = line.partition("\n")
        return f"{head} [{suffix}]" + (f"\n{tail}" if tail else "")


def setup_app_logging() -> None:
    global _LOGGING_CONFIGURED  # pylint: disable=global-statement
    if _LOGGING_CONFIGURED:
        return

    level_name = get_env(SHIPDESK_LOG_LEVEL, "INFO").upper() or "INFO"
    level = getattr(logging, level_name, logging.INFO)
    use_json = get_env_bool(SHIPDESK_LOG_JSON, default=False)
    capture_root = get_env_bool(SHIPDESK_LOG_CAPTURE_ROOT, default=False)

    formatter: logging.Formatter
    if use_json:
        formatter = _JsonFormatter()
    else:
        formatter = _TextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    app_logger = logging.getLogger("shipment_desk_app")
    app_logger.handlers.clear()
    app_logger.addHandler(handler)
    app_logger.setLevel(level)
    app_logger.propagate = False

    if capture_root:
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)

    logging.getLogger(__name__).info(
        "Application logging configured. level=%s json=%s capture_root=%s",
        level_name,
        str(use_json).lower(),
        str(capture_root).lower(),
    )
    _LOGGING_CONFIGURED = True
