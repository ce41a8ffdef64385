"""Two-phase spreadsheet import.

Preview stages the upload, parses it, and suggests a column mapping. Execute
applies a mapping to every row of the staged file, coercing leniently and
persisting rows one at a time, so a bad row is reported without stopping the
rest. The staged file is removed once Execute finishes, whatever the outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import io
import logging
from typing import Any, Mapping

import pandas as pd

from shipment_desk_app.core.errors import (
    FieldError,
    NotFoundError,
    ShipmentDeskError,
    StructuralPreconditionError,
    ValidationFailedError,
)
from shipment_desk_app.imports.coercion import coerce_cell
from shipment_desk_app.imports.matching import SKIP, suggest_mapping
from shipment_desk_app.imports.parsing import detect_file_format, file_suffix, parse_table
from shipment_desk_app.imports.store import ImportJob, ImportJobRegistry, ImportJobStatus
from shipment_desk_app.infrastructure.db import DataExecutionError
from shipment_desk_app.infrastructure.staging import FileStaging
from shipment_desk_app.records.models import json_safe
from shipment_desk_app.records.service import ShipmentService
from shipment_desk_app.schema.fields import ChoiceField, FieldDefinition, FieldType, NumberField
from shipment_desk_app.schema.store import FieldSchemaStore

LOGGER = logging.getLogger(__name__)

TEMPLATE_FORMATS = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
SAMPLE_VALUES: dict[FieldType, str] = {
    FieldType.DATE: "2024-01-15",
    FieldType.TIME: "10:30",
    FieldType.DATETIME: "2024-01-15T10:30:00",
    FieldType.NUMBER: "100",
    FieldType.RANGE: "50",
    FieldType.BOOLEAN: "true",
    FieldType.EMAIL: "example@email.com",
    FieldType.PHONE: "1234567890",
    FieldType.URL: "https://example.com",
    FieldType.COLOR: "#1a2b3c",
}


def _available_field_dict(definition: FieldDefinition) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "key": definition.key,
        "label": definition.label,
        "type": definition.type.value,
        "required": definition.required,
    }
    if isinstance(definition, ChoiceField):
        payload["enumValues"] = list(definition.enum_values)
    return payload


@dataclass(frozen=True)
class ImportPreview:
    file_reference: str
    file_name: str
    headers: list[str]
    sample_rows: list[dict[str, str]]
    total_rows: int
    available_fields: list[FieldDefinition]
    suggested_mapping: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "fileReference": self.file_reference,
            "fileName": self.file_name,
            "headers": list(self.headers),
            "sampleRows": [dict(row) for row in self.sample_rows],
            "totalRows": self.total_rows,
            "availableFields": [_available_field_dict(item) for item in self.available_fields],
            "suggestedMapping": dict(self.suggested_mapping),
        }


@dataclass(frozen=True)
class RowFailure:
    row: int
    data: dict[str, Any]
    error: str
    errors: tuple[FieldError, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "data": self.data,
            "error": self.error,
            "errors": [item.to_dict() for item in self.errors],
        }


@dataclass(frozen=True)
class ImportOutcome:
    successful_count: int = 0
    failed_count: int = 0
    row_errors: tuple[RowFailure, ...] = ()
    created_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def message(self) -> str:
        return f"Import completed. {self.successful_count} successful, {self.failed_count} failed."

    def to_dict(self) -> dict[str, Any]:
        return {
            "successfulCount": self.successful_count,
            "failedCount": self.failed_count,
            "perRowErrors": [item.to_dict() for item in self.row_errors],
            "createdIds": list(self.created_ids),
        }


@dataclass(frozen=True)
class ImportTemplate:
    content: bytes
    media_type: str
    file_name: str


class ImportEngine:
    def __init__(
        self,
        store: FieldSchemaStore,
        shipments: ShipmentService,
        staging: FileStaging,
        registry: ImportJobRegistry,
        *,
        sample_rows: int = 5,
        max_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.store = store
        self.shipments = shipments
        self.staging = staging
        self.registry = registry
        self.sample_rows = max(1, int(sample_rows))
        self.max_bytes = int(max_bytes)

    def importable_fields(self) -> list[FieldDefinition]:
        return [definition for definition in self.store.list() if definition.importable]

    def preview(self, file_name: str, raw_bytes: bytes, *, content_type: str = "") -> ImportPreview:
        if not raw_bytes:
            raise StructuralPreconditionError("No file uploaded")
        if len(raw_bytes) > self.max_bytes:
            raise StructuralPreconditionError(
                f"File exceeds the upload limit of {self.max_bytes // (1024 * 1024) or 1} MB"
            )
        file_format = detect_file_format(file_name, content_type)
        reference = self.staging.store(raw_bytes, suffix=file_suffix(file_format))
        job = self.registry.save(ImportJob(file_reference=reference, file_name=file_name, file_format=file_format))
        try:
            table = parse_table(raw_bytes, file_format)
        except ShipmentDeskError:
            self.staging.delete(reference)
            self.registry.forget(reference)
            raise

        available = self.importable_fields()
        sample = table.rows[: self.sample_rows]
        mapping = suggest_mapping(table.headers, available)
        self.registry.transition(
            job,
            ImportJobStatus.PREVIEWED,
            headers=tuple(table.headers),
            total_rows=table.total_rows,
            sample_rows=tuple(sample),
            suggested_mapping=dict(mapping),
        )
        LOGGER.info(
            "Import previewed. reference=%s rows=%s headers=%s",
            reference,
            table.total_rows,
            len(table.headers),
            extra={"event": "import_previewed", "file_reference": reference, "rows": table.total_rows},
        )
        return ImportPreview(
            file_reference=reference,
            file_name=file_name,
            headers=table.headers,
            sample_rows=sample,
            total_rows=table.total_rows,
            available_fields=available,
            suggested_mapping=mapping,
        )

    def _resolve_mapping(self, mapping: Mapping[str, Any]) -> dict[str, FieldDefinition]:
        if not isinstance(mapping, Mapping):
            raise StructuralPreconditionError("Mapping must be an object of column -> field key")
        fields = {definition.key: definition for definition in self.importable_fields()}
        resolved: dict[str, FieldDefinition] = {}
        for column, target in mapping.items():
            key = str(target or "").strip()
            if not key or key == SKIP:
                continue
            definition = fields.get(key)
            if definition is None:
                raise StructuralPreconditionError(f"Mapping target '{key}' is not an importable field")
            resolved[str(column)] = definition
        return resolved

    def _build_candidate(
        self,
        row: Mapping[str, str],
        mapping: Mapping[str, FieldDefinition],
        default_values: Mapping[str, Any],
    ) -> dict[str, Any]:
        candidate = dict(default_values)
        for column, definition in mapping.items():
            cell = row.get(column)
            if cell is None or str(cell).strip() == "":
                continue
            candidate[definition.key] = coerce_cell(definition, cell)
        return candidate

    def execute(
        self,
        file_reference: str,
        mapping: Mapping[str, Any],
        default_values: Mapping[str, Any] | None = None,
        *,
        actor: str = "import",
    ) -> ImportOutcome:
        reference = str(file_reference or "").strip()
        if not reference or mapping is None:
            raise StructuralPreconditionError("File reference and mapping are required")
        if default_values is not None and not isinstance(default_values, Mapping):
            raise StructuralPreconditionError("defaultValues must be an object")
        job = self.registry.load(reference)
        if job is not None and job.status != ImportJobStatus.PREVIEWED:
            raise StructuralPreconditionError(f"Import job {reference} is already {job.status.value}")
        resolved = self._resolve_mapping(mapping)
        raw_bytes = self.staging.read(reference)
        defaults = dict(default_values or {})

        successful: list[str] = []
        failures: list[RowFailure] = []
        try:
            file_format = job.file_format if job is not None else detect_file_format(reference)
            table = parse_table(raw_bytes, file_format)
            for index, row in enumerate(table.rows):
                row_number = index + 1
                candidate = self._build_candidate(row, resolved, defaults)
                try:
                    record = self.shipments.create(candidate, actor=actor)
                except ValidationFailedError as exc:
                    failures.append(
                        RowFailure(row=row_number, data=json_safe(candidate), error=str(exc), errors=exc.errors)
                    )
                except (ShipmentDeskError, DataExecutionError) as exc:
                    failures.append(RowFailure(row=row_number, data=json_safe(candidate), error=str(exc)))
                else:
                    successful.append(record.shipment_id)
                    continue
                LOGGER.warning(
                    "Import row failed. reference=%s row=%s error=%s",
                    reference,
                    row_number,
                    failures[-1].error,
                    extra={"event": "import_row_failed", "file_reference": reference, "row": row_number},
                )
        finally:
            self.staging.delete(reference)

        outcome = ImportOutcome(
            successful_count=len(successful),
            failed_count=len(failures),
            row_errors=tuple(failures),
            created_ids=tuple(successful),
        )
        if job is not None:
            self.registry.transition(job, ImportJobStatus.EXECUTED, outcome=outcome)
        LOGGER.info(
            "Import executed. reference=%s successful=%s failed=%s",
            reference,
            outcome.successful_count,
            outcome.failed_count,
            extra={
                "event": "import_executed",
                "file_reference": reference,
                "successful": outcome.successful_count,
                "failed": outcome.failed_count,
            },
        )
        return outcome

    def discard(self, file_reference: str) -> None:
        reference = str(file_reference or "").strip()
        job = self.registry.load(reference)
        if job is not None and job.terminal:
            raise StructuralPreconditionError(f"Import job {reference} is already {job.status.value}")
        removed = self.staging.delete(reference)
        if job is None and not removed:
            raise NotFoundError("File not found")
        if job is not None:
            self.registry.transition(job, ImportJobStatus.DISCARDED)
        LOGGER.info(
            "Import discarded. reference=%s",
            reference,
            extra={"event": "import_discarded", "file_reference": reference},
        )

    def template(self, file_format: str = "csv") -> ImportTemplate:
        """Build a blank import file whose headers are the labels of visible, importable fields."""
        cleaned = str(file_format or "csv").strip().lower()
        if cleaned not in TEMPLATE_FORMATS:
            raise StructuralPreconditionError("Template format must be csv or xlsx")
        fields = [definition for definition in self.store.list_visible() if definition.importable]
        if not fields:
            raise NotFoundError("No field configurations found. Please initialize fields first.")

        headers = [definition.label for definition in fields]
        sample_row = [_sample_value(definition) for definition in fields]
        instruction_row = [_instruction(definition) for definition in fields]
        if cleaned == "csv":
            frame = pd.DataFrame([instruction_row, sample_row], columns=headers)
            content = frame.to_csv(index=False).encode("utf-8")
        else:
            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
                pd.DataFrame([sample_row], columns=headers).to_excel(writer, sheet_name="Data", index=False)
                pd.DataFrame(
                    [{"Column Name": label, "Description": text} for label, text in zip(headers, instruction_row)]
                ).to_excel(writer, sheet_name="Instructions", index=False)
            content = buffer.getvalue()
        return ImportTemplate(
            content=content,
            media_type=TEMPLATE_FORMATS[cleaned],
            file_name=f"import-template.{cleaned}",
        )


def _sample_value(definition: FieldDefinition) -> str:
    if isinstance(definition, ChoiceField):
        return definition.enum_values[0]
    if isinstance(definition, NumberField) and definition.minimum is not None and definition.minimum > 100:
        return str(int(definition.minimum))
    if definition.type in SAMPLE_VALUES:
        return SAMPLE_VALUES[definition.type]
    return definition.placeholder or f"Sample {definition.label}"


def _instruction(definition: FieldDefinition) -> str:
    text = definition.type.value
    if definition.required:
        text += " (Required)"
    if isinstance(definition, ChoiceField):
        text += f" - Options: {', '.join(definition.enum_values)}"
    return text
