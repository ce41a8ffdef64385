from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.core.errors import ConflictError, InvalidSchemaError, NotFoundError
from shipment_desk_app.schema.fields import ChoiceField, FieldType


def test_initialize_defaults_installs_bootstrap_schema_once(field_store) -> None:
    created, definitions = field_store.initialize_defaults()

    assert created is True
    assert len(definitions) == 22
    assert [item.key for item in definitions][:3] == ["date", "pickupCustomerName", "pickupCustomerMoNo"]

    again, existing = field_store.initialize_defaults()
    assert again is False
    assert len(existing) == 22
    assert field_store.count() == 22


def test_create_assigns_next_order_and_persists(seeded_store) -> None:
    created = seeded_store.create({"key": "vehicleNo", "label": "Vehicle Number", "type": "text"})

    assert created.order == 23
    assert seeded_store.get("vehicleNo") == created
    assert seeded_store.list()[-1].key == "vehicleNo"


def test_create_in_empty_store_starts_at_one(field_store) -> None:
    created = field_store.create({"key": "lane", "label": "Lane", "type": "text"})

    assert created.order == 1


def test_explicit_zero_order_is_kept(field_store) -> None:
    created = field_store.create({"key": "lane", "label": "Lane", "type": "text", "order": 0})

    assert created.order == 0


def test_duplicate_key_is_a_conflict(seeded_store) -> None:
    with pytest.raises(ConflictError, match="already exists"):
        seeded_store.create({"key": "awb", "label": "Another AWB", "type": "text"})


def test_enum_without_values_is_rejected_and_not_stored(seeded_store) -> None:
    with pytest.raises(InvalidSchemaError):
        seeded_store.create({"key": "lane", "label": "Lane", "type": "enum", "enumValues": []})

    assert seeded_store.find("lane") is None


def test_list_is_sorted_by_order_then_key(field_store) -> None:
    field_store.create({"key": "zeta", "label": "Zeta", "type": "text", "order": 5})
    field_store.create({"key": "alpha", "label": "Alpha", "type": "text", "order": 5})
    field_store.create({"key": "first", "label": "First", "type": "text", "order": 1})

    assert [item.key for item in field_store.list()] == ["first", "alpha", "zeta"]


def test_update_merges_changes_and_keeps_key(seeded_store) -> None:
    updated = seeded_store.update("city", {"key": "town", "label": "Town / City", "group": "Destination"})

    assert updated.key == "city"
    assert updated.label == "Town / City"
    assert updated.group == "Destination"
    assert updated.required is True
    assert seeded_store.get("city").label == "Town / City"


def test_create_treats_blank_order_as_unspecified(seeded_store) -> None:
    created = seeded_store.create({"key": "vehicleNo", "label": "Vehicle Number", "type": "text", "order": " "})

    assert created.order == 23


def test_update_accepts_attribute_aliases(seeded_store) -> None:
    seeded_store.create(
        {"key": "refCode", "label": "Reference Code", "type": "text", "validationRule": {"pattern": "^A"}}
    )

    updated = seeded_store.update("refCode", {"validationRule": {"pattern": "^B"}, "help_text": "Starts with B"})

    assert updated.pattern == "^B"
    assert updated.help_text == "Starts with B"
    assert seeded_store.get("refCode").pattern == "^B"

    relabelled = seeded_store.update("paymentStatus", {"enum_values": ["X", "Y"], "default_value": "X"})

    assert relabelled.enum_values == ("X", "Y")
    assert relabelled.default_value == "X"
    assert seeded_store.get("paymentStatus").enum_values == ("X", "Y")


def test_update_with_blank_order_keeps_position(seeded_store) -> None:
    before = seeded_store.get("city").order

    assert seeded_store.update("city", {"order": "", "label": "Town"}).order == before


def test_update_rejects_invalid_result_without_writing(seeded_store) -> None:
    with pytest.raises(InvalidSchemaError):
        seeded_store.update("paymentStatus", {"enumValues": []})

    stored = seeded_store.get("paymentStatus")
    assert isinstance(stored, ChoiceField)
    assert "Paid" in stored.enum_values


def test_update_can_change_variant(seeded_store) -> None:
    updated = seeded_store.update("bookingCode", {"type": "enum", "enumValues": ["B1", "B2"]})

    assert updated.type is FieldType.ENUM
    assert isinstance(seeded_store.get("bookingCode"), ChoiceField)


def test_missing_field_operations_raise_not_found(seeded_store) -> None:
    with pytest.raises(NotFoundError, match="Field configuration 'nope' not found"):
        seeded_store.get("nope")
    with pytest.raises(NotFoundError):
        seeded_store.update("nope", {"label": "Nope"})
    with pytest.raises(NotFoundError):
        seeded_store.delete("nope")


def test_delete_removes_field(seeded_store) -> None:
    removed = seeded_store.delete("pickupRef")

    assert removed.key == "pickupRef"
    assert seeded_store.find("pickupRef") is None
    assert seeded_store.count() == 21


def test_bulk_update_reports_each_item(seeded_store) -> None:
    results = seeded_store.bulk_update(
        [
            {"key": "city", "visible": False},
            {"key": "missing", "label": "Missing"},
            {"key": "state", "fields": {"order": 0}},
            {"key": "paymentStatus", "enumValues": []},
        ]
    )

    assert [result.ok for result in results] == [True, False, True, False]
    assert results[1].error_code == "NOT_FOUND"
    assert results[3].error_code == "INVALID_SCHEMA"
    assert seeded_store.get("city").visible is False
    assert seeded_store.list()[0].key == "state"


def test_reorder_requires_orders(seeded_store) -> None:
    with pytest.raises(InvalidSchemaError):
        seeded_store.reorder([{"key": "city"}])

    results = seeded_store.reorder([{"key": "city", "order": 0}, {"key": "state", "order": 0}])

    assert all(result.ok for result in results)
    assert [item.key for item in seeded_store.list()[:2]] == ["city", "state"]


def test_duplicate_copies_definition_under_new_key(seeded_store) -> None:
    copy = seeded_store.duplicate("paymentStatus", "refundStatus", "Refund Status")

    assert copy.key == "refundStatus"
    assert copy.label == "Refund Status"
    assert copy.order == 23
    assert isinstance(copy, ChoiceField)
    assert copy.enum_values == seeded_store.get("paymentStatus").enum_values
    assert copy.required is True


def test_duplicate_edge_cases(seeded_store) -> None:
    with pytest.raises(NotFoundError):
        seeded_store.duplicate("nope", "copyKey", "Copy")
    with pytest.raises(ConflictError):
        seeded_store.duplicate("city", "state", "State Copy")
    with pytest.raises(InvalidSchemaError):
        seeded_store.duplicate("city", "1bad", "Copy")
    with pytest.raises(InvalidSchemaError):
        seeded_store.duplicate("city", "cityCopy", "  ")


def test_visible_list_and_groups(seeded_store) -> None:
    seeded_store.update("pickupRef", {"visible": False})
    seeded_store.update("city", {"group": "Destination"})
    seeded_store.update("pickupCustomerName", {"group": "Pickup"})

    visible_keys = [item.key for item in seeded_store.list_visible()]

    assert "pickupRef" not in visible_keys
    assert len(visible_keys) == 21
    assert seeded_store.list_groups() == ["Destination", "Pickup"]


def test_duplicate_awb_copy_matches_source(seeded_store) -> None:
    source = seeded_store.get("awb")

    copy = seeded_store.duplicate("awb", "awb_copy", "AWB (Copy)")

    assert copy.order == 23
    assert copy.type is source.type
    assert copy.validation_rule() == source.validation_rule()
    assert copy.group == source.group
    assert copy.visible == source.visible
    assert copy.required == source.required
    assert copy.placeholder == source.placeholder


def test_bulk_update_is_idempotent(seeded_store) -> None:
    payload = [
        {"key": "city", "order": 2, "visible": True},
        {"key": "state", "order": 1, "visible": False},
    ]

    seeded_store.bulk_update(payload)
    first = [(item.key, item.order, item.visible) for item in seeded_store.list()]
    seeded_store.bulk_update(payload)
    second = [(item.key, item.order, item.visible) for item in seeded_store.list()]

    assert first == second
