from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


class ShipmentDeskError(RuntimeError):
    """Base class for domain failures surfaced to API callers."""


class InvalidSchemaError(ShipmentDeskError):
    """Raised when a field definition violates the key or enum invariants."""


class ConflictError(ShipmentDeskError):
    """Raised when a key or unique value is already taken."""


class NotFoundError(ShipmentDeskError):
    """Raised when a field key, record id, or staged file reference is unknown."""


class UnsupportedFileTypeError(ShipmentDeskError):
    """Raised when an uploaded import file is not a supported spreadsheet format."""


class StructuralPreconditionError(ShipmentDeskError):
    """Raised when a request is structurally unusable (missing reference, corrupt file)."""


@dataclass(frozen=True)
class FieldError:
    field: str
    code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ValidationFailedError(ShipmentDeskError):
    def __init__(self, errors: list[FieldError] | tuple[FieldError, ...], message: str = "") -> None:
        self.errors = tuple(errors)
        if not message:
            message = "; ".join(error.message for error in self.errors) or "Validation failed."
        super().__init__(message)

    def to_details(self) -> dict[str, Any]:
        return {"errors": [error.to_dict() for error in self.errors]}
