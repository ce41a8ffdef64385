from __future__ import annotations

from typing import Any

PAYMENT_STATUS_VALUES = ["Pending", "Paid", "Partial", "Refunded"]
SHIPMENT_STATUS_VALUES = ["Created", "Picked", "InTransit", "Delivered", "RTS", "Cancelled"]


def _field(key: str, label: str, field_type: str, order: int, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "key": key,
        "label": label,
        "type": field_type,
        "visible": True,
        "order": order,
        "required": False,
        "width": "third",
    }
    payload.update(extra)
    return payload


# Bootstrap shipment schema installed by initialize-defaults on an empty store.
# Weight minimum is above zero: import coerces unparsable numbers to 0.
DEFAULT_FIELD_PAYLOADS: list[dict[str, Any]] = [
    _field("date", "Date", "date", 1, required=True),
    _field(
        "pickupCustomerName",
        "Pickup Customer Name",
        "text",
        2,
        required=True,
        placeholder="Enter pickup customer name",
    ),
    _field(
        "pickupCustomerMoNo",
        "Pickup Customer Mobile",
        "phone",
        3,
        required=True,
        placeholder="Enter mobile number",
    ),
    _field("pickupRef", "Pickup Reference", "text", 4, placeholder="Enter pickup reference"),
    _field("awb", "AWB Number", "text", 5, required=True, placeholder="Enter AWB number"),
    _field("awbImageUrl", "AWB Image", "file", 6),
    _field(
        "courierPartner",
        "Courier Partner",
        "text",
        7,
        required=True,
        placeholder="Enter courier partner name",
    ),
    _field(
        "weight",
        "Weight (kg)",
        "number",
        8,
        required=True,
        placeholder="Enter weight in kg",
        validation={"min": 0.01},
    ),
    _field("weightImageUrl", "Weight Image", "file", 9),
    _field(
        "pinCode",
        "Pin Code",
        "text",
        10,
        required=True,
        placeholder="Enter 6-digit pin code",
        validation={"pattern": r"^\d{6}$", "message": "Pin code must be exactly 6 digits"},
    ),
    _field("city", "City", "text", 11, required=True, placeholder="Enter city name"),
    _field("state", "State", "text", 12, required=True, placeholder="Enter state name"),
    _field("bookingCode", "Booking Code", "text", 13, placeholder="Enter booking code"),
    _field(
        "baseAmount",
        "Base Amount",
        "number",
        14,
        required=True,
        placeholder="Enter base amount",
        validation={"min": 0},
    ),
    _field(
        "royaltyMargin",
        "Royalty Margin",
        "number",
        15,
        required=True,
        placeholder="Enter royalty margin",
        validation={"min": 0},
    ),
    _field(
        "gst",
        "GST Amount",
        "number",
        16,
        required=True,
        placeholder="Enter GST amount",
        validation={"min": 0},
    ),
    _field("stickerUrl", "Sticker", "file", 17),
    _field(
        "saleCost",
        "Sale Cost",
        "number",
        18,
        required=True,
        placeholder="Enter sale cost",
        validation={"min": 0},
    ),
    _field(
        "customerName",
        "Customer Name",
        "text",
        19,
        required=True,
        placeholder="Enter customer name",
        width="half",
    ),
    _field(
        "customerMoNo",
        "Customer Mobile",
        "phone",
        20,
        required=True,
        placeholder="Enter customer mobile number",
    ),
    _field(
        "paymentStatus",
        "Payment Status",
        "enum",
        21,
        required=True,
        enumValues=PAYMENT_STATUS_VALUES,
    ),
    _field(
        "shipmentStatus",
        "Shipment Status",
        "enum",
        22,
        required=True,
        enumValues=SHIPMENT_STATUS_VALUES,
    ),
]
