from __future__ import annotations

import sys
from pathlib import Path

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.forms.assembler import WidgetKind, assemble
from shipment_desk_app.schema.defaults import DEFAULT_FIELD_PAYLOADS
from shipment_desk_app.schema.fields import field_from_payload
from shipment_desk_app.schema.validator import validate


def _schema(*payloads):
    return [field_from_payload(payload) for payload in payloads]


def test_default_schema_plan_is_ordered_and_ungrouped() -> None:
    plan = assemble(_schema(*DEFAULT_FIELD_PAYLOADS))

    assert len(plan.sections) == 1
    assert plan.sections[0].name == ""
    assert [item.order for item in plan.directives] == list(range(1, 23))
    assert plan.columns == 3


def test_widgets_spans_and_options() -> None:
    plan = assemble(_schema(*DEFAULT_FIELD_PAYLOADS))

    status = plan.directive("paymentStatus")
    customer = plan.directive("customerName")
    sticker = plan.directive("stickerUrl")

    assert status.widget is WidgetKind.SELECT
    assert status.options == ("Pending", "Paid", "Partial", "Refunded")
    assert status.column_span == 1
    assert customer.column_span == 2
    assert sticker.widget is WidgetKind.FILE_UPLOAD
    assert plan.directive("weight").constraints == {"min": 0.01}


def test_groups_follow_ungrouped_fields_in_first_seen_order() -> None:
    plan = assemble(
        _schema(
            {"key": "city", "label": "City", "type": "text", "order": 3, "group": "Destination"},
            {"key": "awb", "label": "AWB", "type": "text", "order": 2},
            {"key": "sender", "label": "Sender", "type": "text", "order": 1, "group": "Pickup"},
            {"key": "pinCode", "label": "Pin", "type": "text", "order": 4, "group": "Destination"},
        )
    )

    assert [section.name for section in plan.sections] == ["", "Pickup", "Destination"]
    assert [item.key for item in plan.sections[2].directives] == ["city", "pinCode"]
    assert plan.to_dict()["sections"][1]["grouped"] is True


def test_dependency_hides_field_and_waives_required() -> None:
    schema = _schema(
        {
            "key": "shipmentStatus",
            "label": "Shipment Status",
            "type": "enum",
            "enumValues": ["InTransit", "Delivered"],
            "order": 1,
        },
        {
            "key": "deliveryProof",
            "label": "Delivery Proof",
            "type": "text",
            "order": 2,
            "required": True,
            "dependencies": [{"field": "shipmentStatus", "value": "Delivered", "operator": "equals"}],
        },
    )

    in_transit = assemble(schema, {"shipmentStatus": "InTransit"}).directive("deliveryProof")
    delivered = assemble(schema, {"shipmentStatus": "Delivered"}).directive("deliveryProof")

    assert in_transit.visible is False
    assert in_transit.required is False
    assert delivered.visible is True
    assert delivered.required is True
    # The validator agrees with the form about when the field is required.
    assert validate(schema[1], "", {"shipmentStatus": "InTransit"}).valid is True
    assert validate(schema[1], "", {"shipmentStatus": "Delivered"}).valid is False


def test_hidden_definition_stays_hidden_regardless_of_dependencies() -> None:
    plan = assemble(_schema({"key": "notes", "label": "Notes", "type": "textarea", "visible": False, "required": True}))

    directive = plan.directive("notes")

    assert directive.visible is False
    assert directive.active is True
    assert directive.required is False


def test_values_override_defaults() -> None:
    schema = _schema(
        {"key": "courierPartner", "label": "Courier", "type": "text", "defaultValue": "BlueDart"},
        {"key": "city", "label": "City", "type": "text"},
    )

    plan = assemble(schema, {"city": "Pune"})

    assert plan.directive("courierPartner").value == "BlueDart"
    assert plan.directive("city").value == "Pune"
    assert plan.directive("unknown") is None
