from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, time as dt_time
import hashlib
import logging
from pathlib import Path
import re
import sqlite3
import time
from typing import Any, Iterable, Iterator

import pandas as pd

from shipment_desk_app.core.config import AppConfig
from shipment_desk_app.core.env import (
    SHIPDESK_SLOW_QUERY_MS,
    SHIPDESK_SQL_TRACE_ENABLED,
    get_env_bool,
    get_env_float,
)

PERF_LOGGER = logging.getLogger("shipment_desk_app.perf")


class DataConnectionError(RuntimeError):
    """Raised when a database connection cannot be established."""


class DataQueryError(RuntimeError):
    """Raised when a query operation fails."""


class DataExecutionError(RuntimeError):
    """Raised when a non-query execution fails."""


class DataIntegrityError(DataExecutionError):
    """Raised when a write is rejected by a uniqueness or integrity constraint."""


class LocalSQLClient:
    """SQLite client returning pandas frames; every call runs on its own connection."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._sql_trace_enabled = get_env_bool(SHIPDESK_SQL_TRACE_ENABLED, default=False)
        self._slow_query_ms = get_env_float(SHIPDESK_SLOW_QUERY_MS, default=750.0, min_value=1.0)

    @property
    def db_path(self) -> Path:
        return Path(self.config.local_db_path).resolve()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        db_path = self.db_path
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(db_path))
        except (OSError, sqlite3.Error) as exc:
            raise DataConnectionError(f"Could not open local database at {db_path}.") from exc
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _prepare_params(params: Iterable[Any] | None) -> tuple[Any, ...]:
        if params is None:
            return ()
        cleaned: list[Any] = []
        for value in params:
            if isinstance(value, (datetime, date, dt_time)):
                cleaned.append(value.isoformat())
            elif isinstance(value, bool):
                cleaned.append(int(value))
            else:
                cleaned.append(value)
        return tuple(cleaned)

    @staticmethod
    def _sql_preview(statement: str, max_len: int = 180) -> str:
        compact = re.sub(r"\s+", " ", str(statement or "")).strip()
        if len(compact) <= max_len:
            return compact
        return f"{compact[: max_len - 3]}..."

    def _record_query_perf(
        self,
        *,
        operation: str,
        statement: str,
        elapsed_ms: float,
        row_count: int | None = None,
        error: bool = False,
    ) -> None:
        should_log = self._sql_trace_enabled or elapsed_ms >= self._slow_query_ms or error
        if not should_log:
            return
        sql_hash = hashlib.sha1(str(statement or "").encode("utf-8", errors="ignore")).hexdigest()[:12]
        preview = self._sql_preview(statement)
        log_fn = PERF_LOGGER.warning if (elapsed_ms >= self._slow_query_ms or error) else PERF_LOGGER.info
        log_fn(
            "sql_perf op=%s ms=%.2f rows=%s error=%s hash=%s sql=%s",
            operation,
            float(elapsed_ms),
            "-" if row_count is None else int(row_count),
            str(bool(error)).lower(),
            sql_hash,
            preview,
            extra={
                "event": "sql_perf",
                "operation": operation,
                "elapsed_ms": round(float(elapsed_ms), 2),
                "rows": None if row_count is None else int(row_count),
                "error": bool(error),
                "sql_hash": sql_hash,
            },
        )

    def query(self, statement: str, params: Iterable[Any] | None = None) -> pd.DataFrame:
        prepared_params = self._prepare_params(params)
        started = time.perf_counter()
        try:
            with self._connection() as conn:
                cursor = conn.cursor()
                cursor.execute(statement, prepared_params)
                rows = cursor.fetchall()
                cols = [desc[0] for desc in cursor.description] if cursor.description else []
                cursor.close()
        except DataConnectionError:
            self._record_query_perf(operation="query", statement=statement, elapsed_ms=0.0, error=True)
            raise
        except sqlite3.Error as exc:
            self._record_query_perf(operation="query", statement=statement, elapsed_ms=0.0, error=True)
            raise DataQueryError("Query execution failed.") from exc
        frame = pd.DataFrame(rows, columns=cols)
        self._record_query_perf(
            operation="query",
            statement=statement,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
            row_count=len(frame.index),
        )
        return frame

    def query_records(self, statement: str, params: Iterable[Any] | None = None) -> list[dict[str, Any]]:
        frame = self.query(statement, params)
        if frame.empty:
            return []
        return frame.astype(object).where(pd.notna(frame), None).to_dict("records")

    def execute(self, statement: str, params: Iterable[Any] | None = None) -> int:
        prepared_params = self._prepare_params(params)
        started = time.perf_counter()
        try:
            with self._connection() as conn:
                cursor = conn.cursor()
                cursor.execute(statement, prepared_params)
                affected = int(cursor.rowcount or 0)
                cursor.close()
                conn.commit()
        except DataConnectionError:
            self._record_query_perf(operation="execute", statement=statement, elapsed_ms=0.0, error=True)
            raise
        except sqlite3.IntegrityError as exc:
            self._record_query_perf(operation="execute", statement=statement, elapsed_ms=0.0, error=True)
            raise DataIntegrityError(str(exc)) from exc
        except sqlite3.Error as exc:
            self._record_query_perf(operation="execute", statement=statement, elapsed_ms=0.0, error=True)
            raise DataExecutionError("Statement execution failed.") from exc
        self._record_query_perf(
            operation="execute",
            statement=statement,
            elapsed_ms=(time.perf_counter() - started) * 1000.0,
            row_count=affected,
        )
        return affected

    def execute_script(self, script: str) -> None:
        try:
            with self._connection() as conn:
                conn.executescript(script)
                conn.commit()
        except sqlite3.Error as exc:
            raise DataExecutionError("Schema script execution failed.") from exc

    def ping(self) -> bool:
        try:
            self.query("SELECT 1 AS ok")
        except (DataConnectionError, DataQueryError):
            return False
        return True
