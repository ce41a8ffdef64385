from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time
import io
import math
from pathlib import Path
from typing import Any

import pandas as pd

from shipment_desk_app.core.errors import StructuralPreconditionError, UnsupportedFileTypeError

SUPPORTED_EXTENSIONS = {
    ".csv": "csv",
    ".tsv": "tsv",
    ".xlsx": "xlsx",
}
CONTENT_TYPE_FORMATS = {
    "text/csv": "csv",
    "text/tab-separated-values": "tsv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
}
UNSUPPORTED_MESSAGE = "Only CSV and XLSX files are allowed"


@dataclass(frozen=True)
class ParsedTable:
    headers: list[str]
    rows: list[dict[str, str]]

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def detect_file_format(file_name: str, content_type: str = "") -> str:
    ext = Path(str(file_name or "")).suffix.lower()
    if ext in SUPPORTED_EXTENSIONS:
        return SUPPORTED_EXTENSIONS[ext]
    if not ext:
        guessed = CONTENT_TYPE_FORMATS.get(str(content_type or "").split(";", 1)[0].strip().lower())
        if guessed:
            return guessed
    raise UnsupportedFileTypeError(UNSUPPORTED_MESSAGE)


def file_suffix(file_format: str) -> str:
    return f".{file_format}"


def decode_upload_bytes(raw_bytes: bytes) -> str:
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise StructuralPreconditionError("Could not decode upload content.")


def normalize_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return ""
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        if value.time() == dt_time(0, 0) and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, dt_time)):
        return value.isoformat()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def _unique_headers(raw_headers: list[Any]) -> list[str]:
    headers: list[str] = []
    for index, raw in enumerate(raw_headers, start=1):
        name = normalize_cell(raw)
        if not name or name.startswith("Unnamed:"):
            name = f"Column {index}"
        base = name
        suffix = 2
        while name in headers:
            name = f"{base} ({suffix})"
            suffix += 1
        headers.append(name)
    return headers


def _rows_from_matrix(headers: list[str], matrix: list[list[Any]]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for raw_row in matrix:
        row = {
            header: normalize_cell(raw_row[idx] if idx < len(raw_row) else "")
            for idx, header in enumerate(headers)
        }
        if any(row.values()):
            rows.append(row)
    return rows


def _parse_delimited(raw_bytes: bytes, *, delimiter: str) -> ParsedTable:
    text = decode_upload_bytes(raw_bytes)
    try:
        records = list(csv.reader(io.StringIO(text), delimiter=delimiter))
    except csv.Error as exc:
        raise StructuralPreconditionError(f"Could not parse the uploaded file: {exc}") from exc
    if not records or not any(str(cell).strip() for cell in records[0]):
        raise StructuralPreconditionError("The uploaded file has no header row.")
    headers = _unique_headers(records[0])
    return ParsedTable(headers=headers, rows=_rows_from_matrix(headers, records[1:]))


def _parse_workbook(raw_bytes: bytes) -> ParsedTable:
    try:
        frame = pd.read_excel(io.BytesIO(raw_bytes), sheet_name=0, dtype=object, engine="openpyxl")
    except Exception as exc:
        raise StructuralPreconditionError("Could not read the uploaded workbook.") from exc
    if len(frame.columns) == 0:
        raise StructuralPreconditionError("The uploaded file has no header row.")
    headers = _unique_headers(list(frame.columns))
    matrix = frame.astype(object).where(pd.notna(frame), None).values.tolist()
    return ParsedTable(headers=headers, rows=_rows_from_matrix(headers, matrix))


def parse_table(raw_bytes: bytes, file_format: str) -> ParsedTable:
    """Normalise a delimited file or the first workbook sheet into header-keyed string rows."""
    if file_format == "csv":
        return _parse_delimited(raw_bytes, delimiter=",")
    if file_format == "tsv":
        return _parse_delimited(raw_bytes, delimiter="\t")
    if file_format == "xlsx":
        return _parse_workbook(raw_bytes)
    raise UnsupportedFileTypeError(UNSUPPORTED_MESSAGE)
