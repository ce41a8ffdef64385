"""Coerce and check raw values against field definitions.

``validate`` handles a single value and never raises for bad input; the
outcome carries the coerced value or a ``FieldError``. ``validate_record`` runs
it across a whole schema, so both interactive writes and import rows go through
the same checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time as dt_time
from enum import Enum
import math
import re
from typing import Any, Iterable, Mapping
from urllib.parse import urlparse

import pandas as pd

from shipment_desk_app.core.errors import FieldError, ValidationFailedError
from shipment_desk_app.schema.dependencies import is_active
from shipment_desk_app.schema.fields import (
    BooleanField,
    ChoiceField,
    FieldDefinition,
    FieldType,
    FileField,
    NumberField,
    TemporalField,
    TextField,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[+]?[\d\s\-\(\)]{10,15}$")
COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
TIME_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p")
TRUE_VALUES = {"true", "yes", "y", "1", "on"}
FALSE_VALUES = {"false", "no", "n", "0", "off"}


class ValidationErrorCode(str, Enum):
    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    PATTERN_MISMATCH = "PATTERN_MISMATCH"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    value: Any = None
    error: FieldError | None = None


class _Rejected(Exception):
    def __init__(self, code: ValidationErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _check_text(definition: TextField, raw: Any) -> str:
    if isinstance(raw, (list, tuple, dict, set)):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{definition.label} must be a single value")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    value = str(raw).strip()
    label = definition.label

    if definition.type == FieldType.EMAIL and not EMAIL_PATTERN.match(value):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a valid email address")
    if definition.type == FieldType.PHONE and not PHONE_PATTERN.match(value):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a valid phone number")
    if definition.type == FieldType.URL:
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a valid URL")
    if definition.type == FieldType.COLOR and not COLOR_PATTERN.match(value):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a hex color such as #1a2b3c")

    if definition.pattern and not re.search(definition.pattern, value):
        raise _Rejected(
            ValidationErrorCode.PATTERN_MISMATCH,
            definition.message or f"{label} format is invalid",
        )
    if definition.min_length is not None and len(value) < definition.min_length:
        raise _Rejected(
            ValidationErrorCode.OUT_OF_RANGE,
            f"{label} must be at least {definition.min_length} characters",
        )
    if definition.max_length is not None and len(value) > definition.max_length:
        raise _Rejected(
            ValidationErrorCode.OUT_OF_RANGE,
            f"{label} must be at most {definition.max_length} characters",
        )
    return value


def _check_number(definition: NumberField, raw: Any) -> float:
    label = definition.label
    if isinstance(raw, bool):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a number")
    try:
        number = float(str(raw).strip()) if isinstance(raw, str) else float(raw)
    except (TypeError, ValueError):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a number") from None
    if not math.isfinite(number):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a number")
    if definition.minimum is not None and number < definition.minimum:
        raise _Rejected(
            ValidationErrorCode.OUT_OF_RANGE,
            f"{label} must be at least {_format_number(definition.minimum)}",
        )
    if definition.maximum is not None and number > definition.maximum:
        raise _Rejected(
            ValidationErrorCode.OUT_OF_RANGE,
            f"{label} must be at most {_format_number(definition.maximum)}",
        )
    return number


def _parse_time(raw: Any) -> dt_time | None:
    if isinstance(raw, datetime):
        return raw.time()
    if isinstance(raw, dt_time):
        return raw
    text = str(raw).strip()
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return None


def _parse_timestamp(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return None
    try:
        parsed = pd.to_datetime(str(raw).strip())
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def _check_temporal(definition: TemporalField, raw: Any) -> date | datetime | dt_time:
    label = definition.label
    if definition.type == FieldType.TIME:
        parsed_time = _parse_time(raw)
        if parsed_time is None:
            raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a valid time")
        return parsed_time
    parsed = _parse_timestamp(raw)
    if parsed is None:
        kind = "date" if definition.type == FieldType.DATE else "date and time"
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{label} must be a valid {kind}")
    if definition.type == FieldType.DATE:
        return parsed.date()
    return parsed


def _split_choices(raw: Any) -> list[str]:
    if isinstance(raw, (list, tuple, set)):
        items = list(raw)
    else:
        items = str(raw).split(",")
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def _check_choice(definition: ChoiceField, raw: Any) -> str | list[str]:
    allowed = ", ".join(definition.enum_values)
    message = f"{definition.label} must be one of: {allowed}"
    if definition.multiple:
        selected = _split_choices(raw)
        if any(item not in definition.enum_values for item in selected):
            raise _Rejected(ValidationErrorCode.INVALID_ENUM_VALUE, message)
        return list(dict.fromkeys(selected))
    if isinstance(raw, (list, tuple, set)):
        raise _Rejected(ValidationErrorCode.INVALID_ENUM_VALUE, message)
    value = str(raw).strip()
    if value not in definition.enum_values:
        raise _Rejected(ValidationErrorCode.INVALID_ENUM_VALUE, message)
    return value


def _check_boolean(definition: BooleanField, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    cleaned = str(raw).strip().lower()
    if cleaned in TRUE_VALUES:
        return True
    if cleaned in FALSE_VALUES:
        return False
    raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{definition.label} must be true or false")


def _check_file(definition: FileField, raw: Any) -> str | list[str]:
    if isinstance(raw, (list, tuple)):
        if not definition.multiple:
            raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{definition.label} accepts a single file")
        return [str(item).strip() for item in raw if str(item or "").strip()]
    if isinstance(raw, dict):
        raise _Rejected(ValidationErrorCode.INVALID_TYPE, f"{definition.label} must be a file reference")
    return str(raw).strip()


def _coerce(definition: FieldDefinition, raw: Any) -> Any:
    if isinstance(definition, TextField):
        return _check_text(definition, raw)
    if isinstance(definition, NumberField):
        return _check_number(definition, raw)
    if isinstance(definition, TemporalField):
        return _check_temporal(definition, raw)
    if isinstance(definition, ChoiceField):
        return _check_choice(definition, raw)
    if isinstance(definition, BooleanField):
        return _check_boolean(definition, raw)
    if isinstance(definition, FileField):
        return _check_file(definition, raw)
    raise TypeError(f"No value check for {definition.__class__.__name__}")


def validate(
    definition: FieldDefinition,
    raw_value: Any,
    context: Mapping[str, Any] | None = None,
) -> ValidationOutcome:
    if is_empty(raw_value):
        if definition.required and is_active(definition, context):
            return ValidationOutcome(
                valid=False,
                error=FieldError(
                    field=definition.key,
                    code=ValidationErrorCode.MISSING_REQUIRED.value,
                    message=f"{definition.label} is required",
                ),
            )
        return ValidationOutcome(valid=True, value=None)
    try:
        value = _coerce(definition, raw_value)
    except _Rejected as rejected:
        return ValidationOutcome(
            valid=False,
            error=FieldError(field=definition.key, code=rejected.code.value, message=rejected.message),
        )
    return ValidationOutcome(valid=True, value=value)


@dataclass(frozen=True)
class RecordValidation:
    values: dict[str, Any]
    errors: tuple[FieldError, ...] = field(default_factory=tuple)

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> dict[str, Any]:
        if self.errors:
            raise ValidationFailedError(self.errors)
        return self.values


def validate_record(
    schema: Iterable[FieldDefinition],
    values: Mapping[str, Any],
) -> RecordValidation:
    """Validate every schema field against ``values``; keys outside the schema pass through unchanged."""
    coerced: dict[str, Any] = {key: value for key, value in values.items()}
    errors: list[FieldError] = []
    for definition in schema:
        outcome = validate(definition, values.get(definition.key), values)
        if outcome.error is not None:
            errors.append(outcome.error)
            continue
        if definition.key in values or outcome.value is not None:
            coerced[definition.key] = outcome.value
    return RecordValidation(values=coerced, errors=tuple(errors))
