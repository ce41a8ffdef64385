from __future__ import annotations

from dataclasses import replace
import json
import logging
from typing import Any, Mapping

from shipment_desk_app.core.errors import ConflictError, NotFoundError
from shipment_desk_app.infrastructure.db import DataIntegrityError, LocalSQLClient
from shipment_desk_app.records.models import ShipmentRecord, json_safe

LOGGER = logging.getLogger(__name__)

_COLUMNS = (
    "shipment_id, awb, core_json, additional_fields_json, total_before_gst, total_after_gst, "
    "grand_total, created_by, updated_by, created_at, updated_at"
)
_INSERT = f"INSERT INTO app_shipment ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
_UPDATE = (
    "UPDATE app_shipment SET awb = ?, core_json = ?, additional_fields_json = ?, total_before_gst = ?, "
    "total_after_gst = ?, grand_total = ?, updated_by = ?, updated_at = ? WHERE shipment_id = ?"
)
_SELECT_ONE = f"SELECT {_COLUMNS} FROM app_shipment WHERE shipment_id = ?"
_SELECT_PAGE = f"SELECT {_COLUMNS} FROM app_shipment ORDER BY created_at DESC, shipment_id LIMIT ? OFFSET ?"
_COUNT = "SELECT COUNT(*) AS total FROM app_shipment"
_DELETE = "DELETE FROM app_shipment WHERE shipment_id = ?"


def _awb_column(record: ShipmentRecord) -> str | None:
    value = str(record.awb or "").strip()
    return value or None


def _conflict(record: ShipmentRecord) -> ConflictError:
    return ConflictError(f"Shipment with AWB '{record.awb}' already exists")


class ShipmentRepository:
    """Stores shipment records; the AWB column carries the uniqueness constraint."""

    def __init__(self, client: LocalSQLClient) -> None:
        self.client = client

    @staticmethod
    def _record_from_row(row: Mapping[str, Any]) -> ShipmentRecord:
        core = json.loads(str(row.get("core_json") or "{}"))
        extension = json.loads(str(row.get("additional_fields_json") or "{}"))
        record = ShipmentRecord.from_values(
            str(row.get("shipment_id") or ""),
            core,
            created_by=str(row.get("created_by") or ""),
            updated_by=str(row.get("updated_by") or ""),
            created_at=str(row.get("created_at") or ""),
            updated_at=str(row.get("updated_at") or ""),
        )
        return replace(record, additional_fields=dict(extension))

    def insert(self, record: ShipmentRecord) -> ShipmentRecord:
        try:
            self.client.execute(
                _INSERT,
                (
                    record.shipment_id,
                    _awb_column(record),
                    json.dumps(json_safe(record.core_values())),
                    json.dumps(json_safe(record.additional_fields)),
                    record.totals.total_before_gst,
                    record.totals.total_after_gst,
                    record.totals.grand_total,
                    record.created_by,
                    record.updated_by,
                    record.created_at,
                    record.updated_at,
                ),
            )
        except DataIntegrityError as exc:
            raise _conflict(record) from exc
        return record

    def update(self, record: ShipmentRecord) -> ShipmentRecord:
        try:
            affected = self.client.execute(
                _UPDATE,
                (
                    _awb_column(record),
                    json.dumps(json_safe(record.core_values())),
                    json.dumps(json_safe(record.additional_fields)),
                    record.totals.total_before_gst,
                    record.totals.total_after_gst,
                    record.totals.grand_total,
                    record.updated_by,
                    record.updated_at,
                    record.shipment_id,
                ),
            )
        except DataIntegrityError as exc:
            raise _conflict(record) from exc
        if affected == 0:
            raise NotFoundError(f"Shipment '{record.shipment_id}' not found")
        return record

    def get(self, shipment_id: str) -> ShipmentRecord:
        rows = self.client.query_records(_SELECT_ONE, (str(shipment_id or "").strip(),))
        if not rows:
            raise NotFoundError(f"Shipment '{shipment_id}' not found")
        return self._record_from_row(rows[0])

    def list_page(self, *, limit: int = 50, offset: int = 0) -> list[ShipmentRecord]:
        rows = self.client.query_records(_SELECT_PAGE, (max(1, int(limit)), max(0, int(offset))))
        return [self._record_from_row(row) for row in rows]

    def count(self) -> int:
        rows = self.client.query_records(_COUNT)
        return int(rows[0].get("total") or 0) if rows else 0

    def delete(self, shipment_id: str) -> None:
        affected = self.client.execute(_DELETE, (str(shipment_id or "").strip(),))
        if affected == 0:
            raise NotFoundError(f"Shipment '{shipment_id}' not found")
        LOGGER.info(
            "Shipment deleted. id=%s",
            shipment_id,
            extra={"event": "shipment_deleted", "shipment_id": str(shipment_id)},
        )
