from __future__ import annotations

from datetime import UTC, datetime
import logging
from typing import Any, Mapping
import uuid

from shipment_desk_app.records.models import ShipmentRecord
from shipment_desk_app.records.repository import ShipmentRepository
from shipment_desk_app.schema.store import FieldSchemaStore
from shipment_desk_app.schema.validator import validate_record

LOGGER = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat()


class ShipmentService:
    """Schema-validated shipment writes shared by the API and the import engine."""

    def __init__(self, store: FieldSchemaStore, repo: ShipmentRepository) -> None:
        self.store = store
        self.repo = repo

    def create(self, values: Mapping[str, Any], *, actor: str = "") -> ShipmentRecord:
        coerced = validate_record(self.store.list(), values).raise_for_errors()
        now = _now()
        record = ShipmentRecord.from_values(
            uuid.uuid4().hex,
            coerced,
            created_by=actor,
            updated_by=actor,
            created_at=now,
            updated_at=now,
        )
        self.repo.insert(record)
        LOGGER.info(
            "Shipment created. id=%s awb=%s",
            record.shipment_id,
            record.awb,
            extra={"event": "shipment_created", "shipment_id": record.shipment_id},
        )
        return record

    def update(self, shipment_id: str, changes: Mapping[str, Any], *, actor: str = "") -> ShipmentRecord:
        existing = self.repo.get(shipment_id)
        merged = existing.values()
        merged.update(dict(changes or {}))
        coerced = validate_record(self.store.list(), merged).raise_for_errors()
        record = ShipmentRecord.from_values(
            existing.shipment_id,
            coerced,
            created_by=existing.created_by,
            created_at=existing.created_at,
            updated_by=actor,
            updated_at=_now(),
        )
        self.repo.update(record)
        LOGGER.info(
            "Shipment updated. id=%s",
            record.shipment_id,
            extra={"event": "shipment_updated", "shipment_id": record.shipment_id},
        )
        return record

    def get(self, shipment_id: str) -> ShipmentRecord:
        return self.repo.get(shipment_id)

    def list_page(self, *, limit: int = 50, offset: int = 0) -> tuple[list[ShipmentRecord], int]:
        return self.repo.list_page(limit=limit, offset=offset), self.repo.count()

    def delete(self, shipment_id: str) -> None:
        self.repo.delete(shipment_id)
