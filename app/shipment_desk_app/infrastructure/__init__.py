"""Infrastructure adapters for storage, staging, and logging."""

from shipment_desk_app.infrastructure.db import (
    DataConnectionError,
    DataExecutionError,
    DataIntegrityError,
    DataQueryError,
    LocalSQLClient,
)

__all__ = [
    "DataConnectionError",
    "DataExecutionError",
    "DataIntegrityError",
    "DataQueryError",
    "LocalSQLClient",
]
