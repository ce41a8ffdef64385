from __future__ import annotations

import logging
from pathlib import Path
import re
import time
import uuid

from shipment_desk_app.core.errors import NotFoundError

LOGGER = logging.getLogger(__name__)
_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStaging:
    """Temporary store for uploaded import files, addressed by generated name."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path_for(self, name: str) -> Path:
        cleaned = str(name or "").strip()
        if not cleaned or not _SAFE_NAME.match(cleaned) or cleaned.startswith("."):
            raise NotFoundError("File not found")
        return self.root / cleaned

    def store(self, raw_bytes: bytes, *, suffix: str = "") -> str:
        self.root.mkdir(parents=True, exist_ok=True)
        name = f"import-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}{suffix.lower()}"
        (self.root / name).write_bytes(raw_bytes)
        return name

    def exists(self, name: str) -> bool:
        try:
            return self._path_for(name).is_file()
        except NotFoundError:
            return False

    def read(self, name: str) -> bytes:
        path = self._path_for(name)
        if not path.is_file():
            raise NotFoundError("File not found")
        return path.read_bytes()

    def delete(self, name: str) -> bool:
        try:
            path = self._path_for(name)
        except NotFoundError:
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            LOGGER.warning("Could not remove staged import file. name=%s", name, exc_info=True)
            return False
        return True
