from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import json
import logging
from typing import Any, Iterable, Mapping

from shipment_desk_app.core.errors import (
    ConflictError,
    InvalidSchemaError,
    NotFoundError,
)
from shipment_desk_app.infrastructure.db import DataIntegrityError, LocalSQLClient
from shipment_desk_app.schema.defaults import DEFAULT_FIELD_PAYLOADS
from shipment_desk_app.schema.fields import (
    FieldDefinition,
    canonical_payload,
    check_field_key,
    field_from_payload,
    field_type_descriptors,
    order_is_blank,
    sort_definitions,
)

LOGGER = logging.getLogger(__name__)

_SELECT_ALL = "SELECT field_key, sort_order, definition_json FROM app_field_definition"
_SELECT_ONE = f"{_SELECT_ALL} WHERE field_key = ?"
_INSERT = (
    "INSERT INTO app_field_definition (field_key, sort_order, definition_json, created_at, updated_at) "
    "VALUES (?, ?, ?, ?, ?)"
)
_UPDATE = (
    "UPDATE app_field_definition SET sort_order = ?, definition_json = ?, updated_at = ? "
    "WHERE field_key = ?"
)
_DELETE = "DELETE FROM app_field_definition WHERE field_key = ?"
_MAX_ORDER = "SELECT MAX(sort_order) AS max_order FROM app_field_definition"
_COUNT = "SELECT COUNT(*) AS total FROM app_field_definition"


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _not_found(key: str) -> NotFoundError:
    return NotFoundError(f"Field configuration '{key}' not found")


@dataclass(frozen=True)
class BulkItemResult:
    key: str
    ok: bool
    field: FieldDefinition | None = None
    error_code: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"key": self.key, "success": self.ok}
        if self.field is not None:
            payload["data"] = self.field.to_dict()
        if not self.ok:
            payload["error"] = {"code": self.error_code, "message": self.message}
        return payload


class FieldSchemaStore:
    """Ordered, persistent set of field definitions keyed by field key."""

    def __init__(self, client: LocalSQLClient) -> None:
        self.client = client

    @staticmethod
    def _definition_from_row(row: Mapping[str, Any]) -> FieldDefinition:
        return field_from_payload(json.loads(str(row.get("definition_json") or "{}")))

    def _insert(self, definition: FieldDefinition) -> None:
        now = _now()
        try:
            self.client.execute(
                _INSERT,
                (definition.key, definition.order, json.dumps(definition.to_dict(), default=str), now, now),
            )
        except DataIntegrityError as exc:
            raise ConflictError("Field with this key already exists") from exc

    def _write(self, definition: FieldDefinition) -> None:
        self.client.execute(
            _UPDATE,
            (definition.order, json.dumps(definition.to_dict(), default=str), _now(), definition.key),
        )

    def _next_order(self) -> int:
        rows = self.client.query_records(_MAX_ORDER)
        current = rows[0].get("max_order") if rows else None
        return 1 if current is None else int(current) + 1

    def count(self) -> int:
        rows = self.client.query_records(_COUNT)
        return int(rows[0].get("total") or 0) if rows else 0

    def list(self) -> list[FieldDefinition]:
        definitions = [self._definition_from_row(row) for row in self.client.query_records(_SELECT_ALL)]
        return sort_definitions(definitions)

    def list_visible(self) -> list[FieldDefinition]:
        return [definition for definition in self.list() if definition.visible]

    def list_groups(self) -> list[str]:
        return sorted({definition.group for definition in self.list() if definition.group})

    @staticmethod
    def type_descriptors() -> list[dict[str, Any]]:
        return field_type_descriptors()

    def find(self, key: str) -> FieldDefinition | None:
        rows = self.client.query_records(_SELECT_ONE, (str(key or "").strip(),))
        if not rows:
            return None
        return self._definition_from_row(rows[0])

    def get(self, key: str) -> FieldDefinition:
        definition = self.find(key)
        if definition is None:
            raise _not_found(key)
        return definition

    def create(self, payload: Mapping[str, Any]) -> FieldDefinition:
        candidate = dict(payload or {})
        if order_is_blank(candidate.get("order")):
            candidate["order"] = self._next_order()
        definition = field_from_payload(candidate)
        if self.find(definition.key) is not None:
            raise ConflictError("Field with this key already exists")
        self._insert(definition)
        LOGGER.info(
            "Field definition created. key=%s type=%s",
            definition.key,
            definition.type.value,
            extra={"event": "field_created", "field_key": definition.key},
        )
        return definition

    def update(self, key: str, changes: Mapping[str, Any]) -> FieldDefinition:
        current = self.get(key)
        merged = current.to_dict()
        merged.update({name: value for name, value in canonical_payload(changes or {}).items() if name != "key"})
        merged["key"] = current.key
        if order_is_blank(merged.get("order")):
            merged["order"] = current.order
        definition = field_from_payload(merged)
        self._write(definition)
        LOGGER.info(
            "Field definition updated. key=%s",
            definition.key,
            extra={"event": "field_updated", "field_key": definition.key},
        )
        return definition

    def delete(self, key: str) -> FieldDefinition:
        definition = self.get(key)
        self.client.execute(_DELETE, (definition.key,))
        LOGGER.info(
            "Field definition deleted. key=%s",
            definition.key,
            extra={"event": "field_deleted", "field_key": definition.key},
        )
        return definition

    def bulk_update(self, items: Iterable[Mapping[str, Any]]) -> list[BulkItemResult]:
        """Apply each ``{key, ...changes}`` item on its own; one failure never blocks the rest.

        Items may also nest their changes as ``{key, fields: {...}}``.
        """
        results: list[BulkItemResult] = []
        for item in items:
            if not isinstance(item, Mapping):
                results.append(
                    BulkItemResult(key="", ok=False, error_code="INVALID_SCHEMA", message="Each item must be an object")
                )
                continue
            key = str(item.get("key") or "").strip()
            nested = item.get("fields")
            if isinstance(nested, Mapping):
                changes = dict(nested)
            else:
                changes = {name: value for name, value in item.items() if name != "key"}
            if not key:
                results.append(
                    BulkItemResult(key="", ok=False, error_code="INVALID_SCHEMA", message="Each field must have a key")
                )
                continue
            try:
                updated = self.update(key, changes)
            except NotFoundError as exc:
                results.append(BulkItemResult(key=key, ok=False, error_code="NOT_FOUND", message=str(exc)))
            except InvalidSchemaError as exc:
                results.append(BulkItemResult(key=key, ok=False, error_code="INVALID_SCHEMA", message=str(exc)))
            else:
                results.append(BulkItemResult(key=key, ok=True, field=updated))
        failed = sum(1 for result in results if not result.ok)
        LOGGER.info(
            "Bulk field update finished. items=%s failed=%s",
            len(results),
            failed,
            extra={"event": "fields_bulk_updated", "items": len(results), "failed": failed},
        )
        return results

    def reorder(self, items: Iterable[Mapping[str, Any]]) -> list[BulkItemResult]:
        changes: list[dict[str, Any]] = []
        for item in items:
            if not isinstance(item, Mapping) or order_is_blank(item.get("order")):
                raise InvalidSchemaError("Each reorder item needs a key and an order")
            changes.append({"key": item.get("key"), "order": item.get("order")})
        return self.bulk_update(changes)

    def duplicate(self, source_key: str, new_key: str, new_label: str) -> FieldDefinition:
        cleaned_key = check_field_key(new_key)
        cleaned_label = str(new_label or "").strip()
        if not cleaned_label:
            raise InvalidSchemaError("New key and label are required")
        source = self.find(source_key)
        if source is None:
            raise NotFoundError(f"Source field configuration '{source_key}' not found")
        if self.find(cleaned_key) is not None:
            raise ConflictError("Field with this key already exists")
        payload = source.to_dict()
        payload.update({"key": cleaned_key, "label": cleaned_label, "order": self._next_order()})
        definition = field_from_payload(payload)
        self._insert(definition)
        LOGGER.info(
            "Field definition duplicated. source=%s key=%s",
            source.key,
            definition.key,
            extra={"event": "field_duplicated", "field_key": definition.key, "source_key": source.key},
        )
        return definition

    def initialize_defaults(self) -> tuple[bool, list[FieldDefinition]]:
        """Install the bootstrap schema when the store is empty; otherwise leave it untouched."""
        if self.count() > 0:
            return False, self.list()
        definitions = [field_from_payload(payload) for payload in DEFAULT_FIELD_PAYLOADS]
        for definition in definitions:
            self._insert(definition)
        LOGGER.info(
            "Default field definitions initialized. count=%s",
            len(definitions),
            extra={"event": "fields_initialized", "count": len(definitions)},
        )
        return True, sort_definitions(definitions)

