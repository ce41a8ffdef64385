from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
import threading
import time
from typing import Any

from shipment_desk_app.core.errors import StructuralPreconditionError

IMPORT_JOB_MAX_ITEMS = 64


class ImportJobStatus(str, Enum):
    UPLOADED = "uploaded"
    PREVIEWED = "previewed"
    EXECUTED = "executed"
    DISCARDED = "discarded"


ALLOWED_TRANSITIONS: dict[ImportJobStatus, frozenset[ImportJobStatus]] = {
    ImportJobStatus.UPLOADED: frozenset({ImportJobStatus.PREVIEWED, ImportJobStatus.DISCARDED}),
    ImportJobStatus.PREVIEWED: frozenset({ImportJobStatus.EXECUTED, ImportJobStatus.DISCARDED}),
    ImportJobStatus.EXECUTED: frozenset(),
    ImportJobStatus.DISCARDED: frozenset(),
}


@dataclass(frozen=True)
class ImportJob:
    file_reference: str
    file_name: str
    file_format: str
    status: ImportJobStatus = ImportJobStatus.UPLOADED
    headers: tuple[str, ...] = ()
    total_rows: int = 0
    sample_rows: tuple[dict[str, str], ...] = ()
    suggested_mapping: dict[str, str] = field(default_factory=dict)
    outcome: Any = None
    created: float = field(default_factory=time.monotonic)

    @property
    def terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]


class ImportJobRegistry:
    """In-process record of import jobs keyed by staged file reference, pruned by age."""

    def __init__(self, ttl_sec: float, max_items: int = IMPORT_JOB_MAX_ITEMS) -> None:
        self.ttl_sec = float(ttl_sec)
        self.max_items = int(max_items)
        self._lock = threading.Lock()
        self._jobs: dict[str, ImportJob] = {}

    def _prune(self, now: float) -> None:
        expired = [ref for ref, job in self._jobs.items() if (now - job.created) >= self.ttl_sec]
        for ref in expired:
            self._jobs.pop(ref, None)
        while len(self._jobs) > self.max_items:
            oldest = min(self._jobs, key=lambda ref: self._jobs[ref].created, default=None)
            if oldest is None:
                break
            self._jobs.pop(oldest, None)

    def save(self, job: ImportJob) -> ImportJob:
        with self._lock:
            self._prune(time.monotonic())
            self._jobs[job.file_reference] = job
        return job

    def load(self, file_reference: str) -> ImportJob | None:
        key = str(file_reference or "").strip()
        if not key:
            return None
        with self._lock:
            self._prune(time.monotonic())
            return self._jobs.get(key)

    def transition(self, job: ImportJob, status: ImportJobStatus, **changes: Any) -> ImportJob:
        if status not in ALLOWED_TRANSITIONS[job.status]:
            raise StructuralPreconditionError(
                f"Import job {job.file_reference} is {job.status.value} and cannot become {status.value}"
            )
        return self.save(replace(job, status=status, **changes))

    def forget(self, file_reference: str) -> None:
        with self._lock:
            self._jobs.pop(str(file_reference or "").strip(), None)
