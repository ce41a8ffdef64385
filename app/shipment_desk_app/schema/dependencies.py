"""Conditional-visibility evaluation shared by validation and form assembly."""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Mapping

from shipment_desk_app.schema.fields import DependencyClause, DependencyOperator, FieldDefinition


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_as_text(item) for item in value)
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _equals(actual: Any, expected: Any) -> bool:
    if actual == expected:
        return True
    return _as_text(actual) == _as_text(expected)


def _not_equals(actual: Any, expected: Any) -> bool:
    return not _equals(actual, expected)


def _contains(actual: Any, expected: Any) -> bool:
    return _as_text(expected) in _as_text(actual)


def _not_contains(actual: Any, expected: Any) -> bool:
    return not _contains(actual, expected)


def _greater_than(actual: Any, expected: Any) -> bool:
    left, right = _as_number(actual), _as_number(expected)
    if left is None or right is None:
        return False
    return left > right


def _less_than(actual: Any, expected: Any) -> bool:
    left, right = _as_number(actual), _as_number(expected)
    if left is None or right is None:
        return False
    return left < right


_COMPARATORS: dict[DependencyOperator, Callable[[Any, Any], bool]] = {
    DependencyOperator.EQUALS: _equals,
    DependencyOperator.NOT_EQUALS: _not_equals,
    DependencyOperator.CONTAINS: _contains,
    DependencyOperator.NOT_CONTAINS: _not_contains,
    DependencyOperator.GREATER_THAN: _greater_than,
    DependencyOperator.LESS_THAN: _less_than,
}
_UNHANDLED_OPERATORS = set(DependencyOperator) - set(_COMPARATORS)
if _UNHANDLED_OPERATORS:
    raise RuntimeError(f"Dependency operators without a comparator: {sorted(op.value for op in _UNHANDLED_OPERATORS)}")


def clause_holds(clause: DependencyClause, values: Mapping[str, Any]) -> bool:
    return _COMPARATORS[clause.operator](values.get(clause.field_key), clause.value)


def evaluate(clauses: Iterable[DependencyClause], values: Mapping[str, Any] | None) -> bool:
    """Return True when every clause holds against ``values``; no clauses means always active."""
    current = values or {}
    return all(clause_holds(clause, current) for clause in clauses)


def is_active(definition: FieldDefinition, values: Mapping[str, Any] | None) -> bool:
    return evaluate(definition.dependencies, values)
