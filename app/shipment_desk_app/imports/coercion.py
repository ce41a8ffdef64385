"""Lenient cell coercion for spreadsheet imports.

Import differs from interactive validation for numbers: a cell
that does not parse becomes ``0.0`` (leading numeric text such as ``"12kg"``
keeps its number) and it is then left to the schema rules, such as a minimum,
to accept or reject the row.
"""

from __future__ import annotations

import math
import re
from typing import Any

from shipment_desk_app.schema.fields import FieldDefinition, NumberField

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def lenient_number(raw: Any) -> float:
    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        number = float(raw)
        return number if math.isfinite(number) else 0.0
    match = _LEADING_NUMBER.match(str(raw).strip())
    if match is None:
        return 0.0
    number = float(match.group(0))
    return number if math.isfinite(number) else 0.0


def coerce_cell(definition: FieldDefinition, raw: Any) -> Any:
    if isinstance(definition, NumberField):
        return lenient_number(raw)
    return raw
