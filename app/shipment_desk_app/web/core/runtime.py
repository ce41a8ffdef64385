from __future__ import annotations

from functools import lru_cache

from shipment_desk_app.core.config import AppConfig
from shipment_desk_app.imports.engine import ImportEngine
from shipment_desk_app.imports.store import ImportJobRegistry
from shipment_desk_app.infrastructure.db import LocalSQLClient
from shipment_desk_app.infrastructure.staging import FileStaging
from shipment_desk_app.records.repository import ShipmentRepository
from shipment_desk_app.records.service import ShipmentService
from shipment_desk_app.schema.store import FieldSchemaStore


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig.from_env()


@lru_cache(maxsize=1)
def get_sql_client() -> LocalSQLClient:
    return LocalSQLClient(get_config())


@lru_cache(maxsize=1)
def get_field_store() -> FieldSchemaStore:
    return FieldSchemaStore(get_sql_client())


@lru_cache(maxsize=1)
def get_shipment_repo() -> ShipmentRepository:
    return ShipmentRepository(get_sql_client())


@lru_cache(maxsize=1)
def get_shipment_service() -> ShipmentService:
    return ShipmentService(get_field_store(), get_shipment_repo())


@lru_cache(maxsize=1)
def get_import_registry() -> ImportJobRegistry:
    return ImportJobRegistry(get_config().import_job_ttl_sec)


@lru_cache(maxsize=1)
def get_import_engine() -> ImportEngine:
    config = get_config()
    return ImportEngine(
        get_field_store(),
        get_shipment_service(),
        FileStaging(config.upload_dir),
        get_import_registry(),
        sample_rows=config.import_sample_rows,
        max_bytes=config.import_max_bytes,
    )


def clear_runtime_caches() -> None:
    for accessor in (
        get_import_engine,
        get_import_registry,
        get_shipment_service,
        get_shipment_repo,
        get_field_store,
        get_sql_client,
        get_config,
    ):
        accessor.cache_clear()
