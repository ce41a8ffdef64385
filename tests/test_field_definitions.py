from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.core.errors import InvalidSchemaError
from shipment_desk_app.schema.fields import (
    ChoiceField,
    FieldType,
    FieldWidth,
    FileField,
    NumberField,
    TextField,
    field_from_payload,
    field_type_descriptors,
)


@pytest.mark.parametrize("field_type", ["enum", "radio", "checkbox", "radio-group", "checkbox-group"])
def test_enum_like_types_require_values(field_type: str) -> None:
    with pytest.raises(InvalidSchemaError, match="Enum values are required"):
        field_from_payload({"key": "lane", "label": "Lane", "type": field_type})


def test_spec_style_aliases_map_to_wire_types() -> None:
    definition = field_from_payload(
        {"key": "services", "label": "Services", "type": "checkbox-group", "enumValues": ["COD", "Insurance"]}
    )
    notes = field_from_payload({"key": "notes", "label": "Notes", "type": "multiline-text"})

    assert isinstance(definition, ChoiceField)
    assert definition.type is FieldType.CHECKBOX_GROUP
    assert definition.multiple is True
    assert definition.to_dict()["type"] == "checkbox"
    assert notes.type is FieldType.MULTILINE_TEXT


@pytest.mark.parametrize("key", ["1awb", "awb-no", "awb no", "", "a" * 51])
def test_invalid_keys_are_rejected(key: str) -> None:
    with pytest.raises(InvalidSchemaError):
        field_from_payload({"key": key, "label": "AWB", "type": "text"})


def test_variants_carry_only_their_own_attributes() -> None:
    text = field_from_payload(
        {"key": "pinCode", "label": "Pin Code", "type": "text", "validation": {"pattern": r"^\d{6}$"}}
    )
    number = field_from_payload(
        {"key": "weight", "label": "Weight", "type": "number", "validation": {"min": 0.01, "max": "500"}}
    )
    upload = field_from_payload({"key": "sticker", "label": "Sticker", "type": "file", "validation": {"accept": "image/*"}})

    assert isinstance(text, TextField)
    assert not hasattr(text, "enum_values")
    assert isinstance(number, NumberField)
    assert number.minimum == 0.01
    assert number.maximum == 500.0
    assert not hasattr(number, "pattern")
    assert isinstance(upload, FileField)
    assert upload.importable is False
    assert upload.to_dict()["validation"] == {"accept": "image/*"}


def test_to_dict_uses_camel_case_wire_names() -> None:
    definition = field_from_payload(
        {
            "key": "paymentStatus",
            "label": "Payment Status",
            "type": "enum",
            "enumValues": ["Pending", "Paid"],
            "helpText": "Collected at delivery",
            "defaultValue": "Pending",
            "width": "half",
            "group": "Billing",
            "dependencies": [{"field": "shipmentStatus", "value": "Delivered", "operator": "equals"}],
        }
    )

    payload = definition.to_dict()

    assert payload["enumValues"] == ["Pending", "Paid"]
    assert payload["helpText"] == "Collected at delivery"
    assert payload["defaultValue"] == "Pending"
    assert payload["width"] == "half"
    assert payload["dependencies"] == [{"field": "shipmentStatus", "value": "Delivered", "operator": "equals"}]
    assert field_from_payload(payload) == definition


def test_width_defaults_to_full_and_rejects_unknown_values() -> None:
    definition = field_from_payload({"key": "city", "label": "City", "type": "text"})

    assert definition.width is FieldWidth.FULL
    with pytest.raises(InvalidSchemaError):
        field_from_payload({"key": "city", "label": "City", "type": "text", "width": "double"})


def test_structural_rules_are_checked_on_construction() -> None:
    with pytest.raises(InvalidSchemaError, match="depend on itself"):
        field_from_payload(
            {"key": "city", "label": "City", "type": "text", "dependencies": [{"field": "city", "value": "x"}]}
        )
    with pytest.raises(InvalidSchemaError, match="operator"):
        field_from_payload(
            {"key": "city", "label": "City", "type": "text", "dependencies": [{"field": "state", "operator": "like"}]}
        )
    with pytest.raises(InvalidSchemaError, match="order"):
        field_from_payload({"key": "city", "label": "City", "type": "text", "order": -1})
    with pytest.raises(InvalidSchemaError, match="regular expression"):
        field_from_payload({"key": "city", "label": "City", "type": "text", "validation": {"pattern": "("}})
    with pytest.raises(InvalidSchemaError, match="Unsupported field type"):
        field_from_payload({"key": "city", "label": "City", "type": "geo"})


def test_type_descriptors_cover_every_kind() -> None:
    descriptors = field_type_descriptors()
    by_value = {item["value"]: item for item in descriptors}

    assert len(descriptors) == len(FieldType)
    assert by_value["enum"]["hasOptions"] is True
    assert by_value["radio"]["hasOptions"] is True
    assert by_value["checkbox"]["hasOptions"] is True
    assert by_value["text"]["hasOptions"] is False
    assert by_value["textarea"]["description"] == "Multi-line text input"
