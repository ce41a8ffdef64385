"""Shipment record with fixed core attributes and an extension side-table.

Values whose key is one of the bootstrap core fields land on typed attributes;
every other key goes to ``additional_fields`` and is never copied onto a core
attribute. The three monetary totals are derived and recomputed whenever a
record is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time as dt_time
import math
from typing import Any, Mapping

# wire key -> attribute name
CORE_ATTRIBUTES: dict[str, str] = {
    "date": "date",
    "pickupCustomerName": "pickup_customer_name",
    "pickupCustomerMoNo": "pickup_customer_mobile",
    "pickupRef": "pickup_ref",
    "awb": "awb",
    "awbImageUrl": "awb_image_url",
    "courierPartner": "courier_partner",
    "weight": "weight",
    "weightImageUrl": "weight_image_url",
    "pinCode": "pin_code",
    "city": "city",
    "state": "state",
    "bookingCode": "booking_code",
    "baseAmount": "base_amount",
    "royaltyMargin": "royalty_margin",
    "gst": "gst",
    "stickerUrl": "sticker_url",
    "saleCost": "sale_cost",
    "customerName": "customer_name",
    "customerMoNo": "customer_mobile",
    "paymentStatus": "payment_status",
    "shipmentStatus": "shipment_status",
}
DERIVED_KEYS = ("totalBeforeGst", "totalAfterGst", "grandTotal")
RESERVED_KEYS = {"id", "createdBy", "updatedBy", "createdAt", "updatedAt", "additionalFields", *DERIVED_KEYS}


def json_safe(value: Any) -> Any:
    if isinstance(value, (datetime, date, dt_time)):
        return value.isoformat()
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [json_safe(item) for item in value]
    return value


def _amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


@dataclass(frozen=True)
class MonetaryTotals:
    total_before_gst: float = 0.0
    total_after_gst: float = 0.0
    grand_total: float = 0.0

    @classmethod
    def compute(cls, base_amount: Any, royalty_margin: Any, gst: Any) -> "MonetaryTotals":
        before = _amount(base_amount) + _amount(royalty_margin)
        after = before + _amount(gst)
        return cls(total_before_gst=before, total_after_gst=after, grand_total=after)

    def to_dict(self) -> dict[str, float]:
        return {
            "totalBeforeGst": self.total_before_gst,
            "totalAfterGst": self.total_after_gst,
            "grandTotal": self.grand_total,
        }


@dataclass(frozen=True)
class ShipmentRecord:
    shipment_id: str
    date: Any = None
    pickup_customer_name: Any = None
    pickup_customer_mobile: Any = None
    pickup_ref: Any = None
    awb: Any = None
    awb_image_url: Any = None
    courier_partner: Any = None
    weight: Any = None
    weight_image_url: Any = None
    pin_code: Any = None
    city: Any = None
    state: Any = None
    booking_code: Any = None
    base_amount: Any = None
    royalty_margin: Any = None
    gst: Any = None
    sticker_url: Any = None
    sale_cost: Any = None
    customer_name: Any = None
    customer_mobile: Any = None
    payment_status: Any = None
    shipment_status: Any = None
    additional_fields: dict[str, Any] = field(default_factory=dict)
    totals: MonetaryTotals = field(default_factory=MonetaryTotals)
    created_by: str = ""
    updated_by: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_values(cls, shipment_id: str, values: Mapping[str, Any], **meta: Any) -> "ShipmentRecord":
        core: dict[str, Any] = {}
        extension: dict[str, Any] = {}
        for key, value in values.items():
            if key in RESERVED_KEYS:
                continue
            attribute = CORE_ATTRIBUTES.get(key)
            if attribute is None:
                extension[key] = json_safe(value)
            else:
                core[attribute] = json_safe(value)
        record = cls(shipment_id=shipment_id, additional_fields=extension, **core, **meta)
        return record.with_totals()

    def with_totals(self) -> "ShipmentRecord":
        return replace(self, totals=MonetaryTotals.compute(self.base_amount, self.royalty_margin, self.gst))

    def core_values(self) -> dict[str, Any]:
        return {key: getattr(self, attribute) for key, attribute in CORE_ATTRIBUTES.items()}

    def values(self) -> dict[str, Any]:
        """Flat key -> value view of core attributes plus the extension map."""
        flat = dict(self.additional_fields)
        flat.update(self.core_values())
        return flat

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.shipment_id}
        payload.update(self.core_values())
        payload.update(self.totals.to_dict())
        payload["additionalFields"] = dict(self.additional_fields)
        payload.update(
            {
                "createdBy": self.created_by,
                "updatedBy": self.updated_by,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
            }
        )
        return payload

