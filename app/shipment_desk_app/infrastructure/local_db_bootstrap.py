from __future__ import annotations

import logging

from shipment_desk_app.core.config import AppConfig
from shipment_desk_app.core.env import SHIPDESK_LOCAL_DB_AUTO_INIT, get_env_bool
from shipment_desk_app.infrastructure.db import LocalSQLClient

LOGGER = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_field_definition (
    field_key TEXT PRIMARY KEY,
    sort_order INTEGER NOT NULL DEFAULT 0,
    definition_json TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_app_field_definition_order ON app_field_definition (sort_order, field_key);

CREATE TABLE IF NOT EXISTS app_shipment (
    shipment_id TEXT PRIMARY KEY,
    awb TEXT UNIQUE,
    core_json TEXT NOT NULL,
    additional_fields_json TEXT NOT NULL DEFAULT '{}',
    total_before_gst REAL NOT NULL DEFAULT 0,
    total_after_gst REAL NOT NULL DEFAULT 0,
    grand_total REAL NOT NULL DEFAULT 0,
    created_by TEXT,
    updated_by TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_app_shipment_created ON app_shipment (created_at);
"""


def ensure_local_db_ready(config: AppConfig, client: LocalSQLClient | None = None) -> None:
    if not get_env_bool(SHIPDESK_LOCAL_DB_AUTO_INIT, default=True):
        return
    sql_client = client or LocalSQLClient(config)
    sql_client.execute_script(SCHEMA_SQL)
    LOGGER.info(
        "Local database ready. path=%s",
        str(sql_client.db_path),
        extra={"event": "local_db_ready"},
    )
