from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable

from shipment_desk_app.schema.fields import FieldDefinition

SKIP = "skip"


def normalize_header(raw_name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(raw_name or "").lower())


@dataclass(frozen=True)
class HeaderRule:
    """Matches when every fragment group has at least one fragment inside the header."""

    target: str
    fragments: tuple[tuple[str, ...], ...]

    def matches(self, normalized_header: str) -> bool:
        return all(any(part in normalized_header for part in group) for group in self.fragments)


# First matching rule wins. Pickup rules sit ahead of the customer rules so
# "Pickup Customer Name" is not taken by customerName.
HEADER_RULES: tuple[HeaderRule, ...] = (
    HeaderRule("date", (("date",),)),
    HeaderRule("awb", (("awb",),)),
    HeaderRule("weight", (("weight",),)),
    HeaderRule("pinCode", (("pincode", "pin"),)),
    HeaderRule("city", (("city",),)),
    HeaderRule("state", (("state",),)),
    HeaderRule("pickupCustomerName", (("pickup",), ("name",))),
    HeaderRule("pickupCustomerMoNo", (("pickup",), ("mobile", "phone"))),
    HeaderRule("pickupRef", (("pickup",), ("ref",))),
    HeaderRule("customerName", (("customer",), ("name",))),
    HeaderRule("customerMoNo", (("customer",), ("mobile", "phone"))),
    HeaderRule("courierPartner", (("courier",),)),
    HeaderRule("bookingCode", (("booking",),)),
    HeaderRule("baseAmount", (("base",), ("amount",))),
    HeaderRule("royaltyMargin", (("royalty",),)),
    HeaderRule("gst", (("gst",),)),
    HeaderRule("saleCost", (("sale",),)),
    HeaderRule("paymentStatus", (("payment",), ("status",))),
    HeaderRule("shipmentStatus", (("shipment",), ("status",))),
)


def suggest_field(header: str, available: Iterable[FieldDefinition]) -> str:
    fields = list(available)
    normalized = normalize_header(header)
    if not normalized:
        return SKIP
    for definition in fields:
        if normalized in {normalize_header(definition.label), normalize_header(definition.key)}:
            return definition.key
    keys = {definition.key for definition in fields}
    for rule in HEADER_RULES:
        if rule.target in keys and rule.matches(normalized):
            return rule.target
    return SKIP


def suggest_mapping(headers: Iterable[str], available: Iterable[FieldDefinition]) -> dict[str, str]:
    """Map each header to a field key, or to ``skip`` when nothing fits."""
    fields = list(available)
    return {header: suggest_field(header, fields) for header in headers}
