"""Field definitions for the operator-editable shipment schema.

A definition is one of a closed set of variants (text-like, numeric, temporal,
choice, boolean, file). Each variant carries only the attributes that mean
something for its kinds, and every variant checks its own invariants on
construction, so a ``FieldDefinition`` instance is always valid.

Definitions travel over the API and into storage as camelCase dictionaries
(``enumValues``, ``helpText``, ``validation.minLength`` ...); ``field_from_payload``
and ``FieldDefinition.to_dict`` are the only translation points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math
import re
from typing import Any, ClassVar, Mapping

from shipment_desk_app.core.errors import InvalidSchemaError

KEY_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
KEY_MAX_LENGTH = 50
LABEL_MAX_LENGTH = 100
GROUP_MAX_LENGTH = 50
KEY_PATTERN_MESSAGE = (
    "Field key must start with a letter and contain only letters, numbers, and underscores"
)
ENUM_VALUES_REQUIRED_MESSAGE = (
    "Enum values are required when field type is enum, radio or checkbox"
)


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    ENUM = "enum"
    BOOLEAN = "boolean"
    CHECKBOX_GROUP = "checkbox"
    RADIO_GROUP = "radio"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    MULTILINE_TEXT = "textarea"
    FILE = "file"
    SECRET_TEXT = "password"
    COLOR = "color"
    RANGE = "range"


FIELD_TYPE_ALIASES: dict[str, FieldType] = {
    "checkbox-group": FieldType.CHECKBOX_GROUP,
    "checkbox_group": FieldType.CHECKBOX_GROUP,
    "radio-group": FieldType.RADIO_GROUP,
    "radio_group": FieldType.RADIO_GROUP,
    "multiline-text": FieldType.MULTILINE_TEXT,
    "multiline_text": FieldType.MULTILINE_TEXT,
    "secret-text": FieldType.SECRET_TEXT,
    "secret_text": FieldType.SECRET_TEXT,
}

FIELD_TYPE_DESCRIPTIONS: dict[FieldType, tuple[str, str]] = {
    FieldType.TEXT: ("Text", "Single line text input"),
    FieldType.NUMBER: ("Number", "Numeric input with validation"),
    FieldType.DATE: ("Date", "Date picker"),
    FieldType.TIME: ("Time", "Time picker"),
    FieldType.DATETIME: ("Date Time", "Date and time picker"),
    FieldType.ENUM: ("Dropdown", "Dropdown selection from predefined options"),
    FieldType.BOOLEAN: ("Boolean", "True/false checkbox"),
    FieldType.CHECKBOX_GROUP: ("Checkbox Group", "Multiple selection checkboxes"),
    FieldType.RADIO_GROUP: ("Radio Group", "Single selection from radio buttons"),
    FieldType.EMAIL: ("Email", "Email address input with validation"),
    FieldType.PHONE: ("Phone", "Phone number input with formatting"),
    FieldType.URL: ("URL", "URL input with validation"),
    FieldType.MULTILINE_TEXT: ("Text Area", "Multi-line text input"),
    FieldType.FILE: ("File", "File upload"),
    FieldType.SECRET_TEXT: ("Password", "Password input (hidden text)"),
    FieldType.COLOR: ("Color", "Color picker"),
    FieldType.RANGE: ("Range", "Range slider input"),
}


class FieldWidth(str, Enum):
    FULL = "full"
    HALF = "half"
    THIRD = "third"
    QUARTER = "quarter"


class DependencyOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


def parse_field_type(raw: Any) -> FieldType:
    if isinstance(raw, FieldType):
        return raw
    cleaned = str(raw or "").strip().lower()
    if cleaned in FIELD_TYPE_ALIASES:
        return FIELD_TYPE_ALIASES[cleaned]
    try:
        return FieldType(cleaned)
    except ValueError:
        raise InvalidSchemaError(f"Unsupported field type: {raw!r}") from None


def _parse_width(raw: Any) -> FieldWidth:
    if isinstance(raw, FieldWidth):
        return raw
    cleaned = str(raw or "").strip().lower()
    if not cleaned:
        return FieldWidth.FULL
    try:
        return FieldWidth(cleaned)
    except ValueError:
        raise InvalidSchemaError(f"Width must be one of: full, half, third, quarter (got {raw!r})") from None


def _parse_operator(raw: Any) -> DependencyOperator:
    if isinstance(raw, DependencyOperator):
        return raw
    cleaned = str(raw or "").strip().lower()
    if not cleaned:
        return DependencyOperator.EQUALS
    try:
        return DependencyOperator(cleaned)
    except ValueError:
        raise InvalidSchemaError(f"Unsupported dependency operator: {raw!r}") from None


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    cleaned = str(value).strip().lower()
    if not cleaned:
        return default
    return cleaned in {"1", "true", "yes", "y", "on"}


def _optional_number(value: Any, name: str) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidSchemaError(f"Validation '{name}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidSchemaError(f"Validation '{name}' must be a number") from None
    if not math.isfinite(number):
        raise InvalidSchemaError(f"Validation '{name}' must be a finite number")
    return number


def _optional_length(value: Any, name: str) -> int | None:
    number = _optional_number(value, name)
    if number is None:
        return None
    if number < 0 or number != int(number):
        raise InvalidSchemaError(f"Validation '{name}' must be a non-negative whole number")
    return int(number)


def _clean_number(value: float | None) -> float | int | None:
    if value is None:
        return None
    return int(value) if float(value).is_integer() else value


def check_field_key(key: str) -> str:
    cleaned = str(key or "").strip()
    if not cleaned:
        raise InvalidSchemaError("Field key is required")
    if len(cleaned) > KEY_MAX_LENGTH:
        raise InvalidSchemaError(f"Field key cannot exceed {KEY_MAX_LENGTH} characters")
    if not KEY_PATTERN.match(cleaned):
        raise InvalidSchemaError(KEY_PATTERN_MESSAGE)
    return cleaned


@dataclass(frozen=True)
class DependencyClause:
    field_key: str
    value: Any
    operator: DependencyOperator = DependencyOperator.EQUALS

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field_key, "value": self.value, "operator": self.operator.value}


def parse_dependency(raw: Mapping[str, Any]) -> DependencyClause:
    if not isinstance(raw, Mapping):
        raise InvalidSchemaError("Each dependency must be an object with field, value and operator")
    field_key = raw.get("field", raw.get("fieldKey"))
    if "value" in raw:
        value = raw.get("value")
    else:
        value = raw.get("comparisonValue")
    try:
        cleaned_key = check_field_key(str(field_key or ""))
    except InvalidSchemaError as exc:
        raise InvalidSchemaError(f"Dependency field is invalid: {exc}") from None
    return DependencyClause(field_key=cleaned_key, value=value, operator=_parse_operator(raw.get("operator")))


@dataclass(frozen=True)
class FieldDefinition:
    key: str
    label: str
    type: FieldType
    order: int = 0
    visible: bool = True
    required: bool = False
    readonly: bool = False
    placeholder: str = ""
    help_text: str = ""
    default_value: Any = None
    width: FieldWidth = FieldWidth.FULL
    group: str = ""
    icon: str = ""
    dependencies: tuple[DependencyClause, ...] = ()
    message: str = ""

    kinds: ClassVar[frozenset[FieldType]] = frozenset()

    def __post_init__(self) -> None:
        check_field_key(self.key)
        if self.type not in self.kinds:
            raise InvalidSchemaError(
                f"Field type '{self.type.value}' cannot be stored as {self.__class__.__name__}"
            )
        if not str(self.label or "").strip():
            raise InvalidSchemaError("Field label is required")
        if len(self.label) > LABEL_MAX_LENGTH:
            raise InvalidSchemaError(f"Field label cannot exceed {LABEL_MAX_LENGTH} characters")
        if len(self.group) > GROUP_MAX_LENGTH:
            raise InvalidSchemaError(f"Group name cannot exceed {GROUP_MAX_LENGTH} characters")
        if self.order < 0:
            raise InvalidSchemaError("Field order must be greater than or equal to 0")
        for clause in self.dependencies:
            if clause.field_key == self.key:
                raise InvalidSchemaError(f"Field '{self.key}' cannot depend on itself")

    @property
    def importable(self) -> bool:
        return True

    def validation_rule(self) -> dict[str, Any]:
        return {"message": self.message} if self.message else {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "type": self.type.value,
            "visible": self.visible,
            "order": self.order,
            "required": self.required,
            "readonly": self.readonly,
            "placeholder": self.placeholder,
            "helpText": self.help_text,
            "defaultValue": self.default_value,
            "width": self.width.value,
            "group": self.group,
            "icon": self.icon,
            "dependencies": [clause.to_dict() for clause in self.dependencies],
            "validation": self.validation_rule(),
        }


@dataclass(frozen=True)
class TextField(FieldDefinition):
    pattern: str = ""
    min_length: int | None = None
    max_length: int | None = None

    kinds: ClassVar[frozenset[FieldType]] = frozenset(
        {
            FieldType.TEXT,
            FieldType.EMAIL,
            FieldType.PHONE,
            FieldType.URL,
            FieldType.MULTILINE_TEXT,
            FieldType.SECRET_TEXT,
            FieldType.COLOR,
        }
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.pattern:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise InvalidSchemaError(f"Validation pattern is not a valid regular expression: {exc}") from None
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise InvalidSchemaError("Validation minLength cannot exceed maxLength")

    def validation_rule(self) -> dict[str, Any]:
        rule = super().validation_rule()
        if self.pattern:
            rule["pattern"] = self.pattern
        if self.min_length is not None:
            rule["minLength"] = self.min_length
        if self.max_length is not None:
            rule["maxLength"] = self.max_length
        return rule


@dataclass(frozen=True)
class NumberField(FieldDefinition):
    minimum: float | None = None
    maximum: float | None = None
    step: float | None = None

    kinds: ClassVar[frozenset[FieldType]] = frozenset({FieldType.NUMBER, FieldType.RANGE})

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise InvalidSchemaError("Validation min cannot exceed max")
        if self.step is not None and self.step <= 0:
            raise InvalidSchemaError("Validation step must be greater than 0")

    def validation_rule(self) -> dict[str, Any]:
        rule = super().validation_rule()
        if self.minimum is not None:
            rule["min"] = _clean_number(self.minimum)
        if self.maximum is not None:
            rule["max"] = _clean_number(self.maximum)
        if self.step is not None:
            rule["step"] = _clean_number(self.step)
        return rule


@dataclass(frozen=True)
class TemporalField(FieldDefinition):
    kinds: ClassVar[frozenset[FieldType]] = frozenset({FieldType.DATE, FieldType.TIME, FieldType.DATETIME})


@dataclass(frozen=True)
class ChoiceField(FieldDefinition):
    enum_values: tuple[str, ...] = field(default_factory=tuple)

    kinds: ClassVar[frozenset[FieldType]] = frozenset(
        {FieldType.ENUM, FieldType.RADIO_GROUP, FieldType.CHECKBOX_GROUP}
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.enum_values:
            raise InvalidSchemaError(ENUM_VALUES_REQUIRED_MESSAGE)

    @property
    def multiple(self) -> bool:
        return self.type == FieldType.CHECKBOX_GROUP

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["enumValues"] = list(self.enum_values)
        return payload


@dataclass(frozen=True)
class BooleanField(FieldDefinition):
    kinds: ClassVar[frozenset[FieldType]] = frozenset({FieldType.BOOLEAN})


@dataclass(frozen=True)
class FileField(FieldDefinition):
    accept: str = ""
    multiple: bool = False

    kinds: ClassVar[frozenset[FieldType]] = frozenset({FieldType.FILE})

    @property
    def importable(self) -> bool:
        return False

    def validation_rule(self) -> dict[str, Any]:
        rule = super().validation_rule()
        if self.accept:
            rule["accept"] = self.accept
        if self.multiple:
            rule["multiple"] = True
        return rule


FIELD_VARIANTS: tuple[type[FieldDefinition], ...] = (
    TextField,
    NumberField,
    TemporalField,
    ChoiceField,
    BooleanField,
    FileField,
)
VARIANT_BY_TYPE: dict[FieldType, type[FieldDefinition]] = {
    kind: variant for variant in FIELD_VARIANTS for kind in variant.kinds
}
_UNCOVERED_TYPES = set(FieldType) - set(VARIANT_BY_TYPE)
if _UNCOVERED_TYPES:
    raise RuntimeError(f"Field types without a definition variant: {sorted(t.value for t in _UNCOVERED_TYPES)}")

ENUM_LIKE_TYPES = ChoiceField.kinds


def _text(payload: Mapping[str, Any], *names: str) -> str:
    for name in names:
        if name in payload and payload[name] is not None:
            return str(payload[name]).strip()
    return ""


def _first(payload: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return default


PAYLOAD_ALIASES: dict[str, str] = {
    "validationRule": "validation",
    "enum_values": "enumValues",
    "help_text": "helpText",
    "default_value": "defaultValue",
}


def canonical_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Rename accepted attribute aliases to the names used by ``to_dict``."""
    return {PAYLOAD_ALIASES.get(name, name): value for name, value in payload.items()}


def order_is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _parse_enum_values(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        raw = [part for part in raw.split(",")]
    if not isinstance(raw, (list, tuple)):
        raise InvalidSchemaError("enumValues must be a list of strings")
    cleaned = [str(item).strip() for item in raw if item is not None and str(item).strip()]
    return tuple(dict.fromkeys(cleaned))


def _parse_order(raw: Any) -> int:
    if order_is_blank(raw):
        return 0
    if isinstance(raw, bool):
        raise InvalidSchemaError("Field order must be a whole number")
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise InvalidSchemaError("Field order must be a whole number") from None
    if not math.isfinite(number) or number != int(number):
        raise InvalidSchemaError("Field order must be a whole number")
    return int(number)


def field_from_payload(payload: Mapping[str, Any]) -> FieldDefinition:
    """Build the matching definition variant from an API/storage dictionary."""
    if not isinstance(payload, Mapping):
        raise InvalidSchemaError("Field definition must be an object")
    field_type = parse_field_type(payload.get("type"))
    variant = VARIANT_BY_TYPE[field_type]

    rule = _first(payload, "validation", "validationRule", default=None) or {}
    if not isinstance(rule, Mapping):
        raise InvalidSchemaError("validation must be an object")
    raw_dependencies = payload.get("dependencies") or []
    if not isinstance(raw_dependencies, (list, tuple)):
        raise InvalidSchemaError("dependencies must be a list")

    common: dict[str, Any] = {
        "key": str(payload.get("key") or "").strip(),
        "label": _text(payload, "label"),
        "type": field_type,
        "order": _parse_order(payload.get("order")),
        "visible": _as_bool(payload.get("visible"), default=True),
        "required": _as_bool(payload.get("required"), default=False),
        "readonly": _as_bool(payload.get("readonly"), default=False),
        "placeholder": _text(payload, "placeholder"),
        "help_text": _text(payload, "helpText", "help_text"),
        "default_value": _first(payload, "defaultValue", "default_value"),
        "width": _parse_width(payload.get("width")),
        "group": _text(payload, "group"),
        "icon": _text(payload, "icon"),
        "dependencies": tuple(parse_dependency(item) for item in raw_dependencies),
        "message": str(rule.get("message") or "").strip(),
    }

    if variant is TextField:
        return TextField(
            **common,
            pattern=str(rule.get("pattern") or "").strip(),
            min_length=_optional_length(rule.get("minLength"), "minLength"),
            max_length=_optional_length(rule.get("maxLength"), "maxLength"),
        )
    if variant is NumberField:
        return NumberField(
            **common,
            minimum=_optional_number(rule.get("min"), "min"),
            maximum=_optional_number(rule.get("max"), "max"),
            step=_optional_number(rule.get("step"), "step"),
        )
    if variant is ChoiceField:
        return ChoiceField(
            **common,
            enum_values=_parse_enum_values(_first(payload, "enumValues", "enum_values")),
        )
    if variant is FileField:
        return FileField(
            **common,
            accept=str(rule.get("accept") or "").strip(),
            multiple=_as_bool(rule.get("multiple"), default=False),
        )
    return variant(**common)


def field_type_descriptors() -> list[dict[str, Any]]:
    return [
        {
            "value": field_type.value,
            "label": FIELD_TYPE_DESCRIPTIONS[field_type][0],
            "description": FIELD_TYPE_DESCRIPTIONS[field_type][1],
            "hasOptions": field_type in ENUM_LIKE_TYPES,
        }
        for field_type in FieldType
    ]


def sort_definitions(definitions: list[FieldDefinition]) -> list[FieldDefinition]:
    return sorted(definitions, key=lambda item: (item.order, item.key))
