from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from shipment_desk_app.core.env import (
    SHIPDESK_ENV,
    SHIPDESK_IMPORT_JOB_TTL_SEC,
    SHIPDESK_IMPORT_MAX_BYTES,
    SHIPDESK_IMPORT_SAMPLE_ROWS,
    SHIPDESK_LOCAL_DB_PATH,
    SHIPDESK_UPLOAD_DIR,
    get_env,
    get_env_float,
    get_env_int,
)

DEV_ENV_NAMES = {"dev", "development", "local", "test"}
DEFAULT_LOCAL_DB_PATH = "setup/local_db/shipment_desk_local.db"
DEFAULT_UPLOAD_DIR = "uploads/temp"
DEFAULT_IMPORT_MAX_BYTES = 10 * 1024 * 1024


def _repo_root() -> Path:
    # app/shipment_desk_app/core/config.py -> repo root is three levels up from core/
    return Path(__file__).resolve().parents[3]


def _resolve_repo_relative_path(raw_path: str) -> str:
    value = str(raw_path or "").strip()
    if not value:
        return value
    path = Path(value)
    if path.is_absolute():
        return str(path)
    return str((_repo_root() / path).resolve())


@dataclass(frozen=True)
class AppConfig:
    env: str = "dev"
    local_db_path: str = DEFAULT_LOCAL_DB_PATH
    upload_dir: str = DEFAULT_UPLOAD_DIR
    import_max_bytes: int = DEFAULT_IMPORT_MAX_BYTES
    import_sample_rows: int = 5
    import_job_ttl_sec: float = 1800.0

    @property
    def is_dev_env(self) -> bool:
        return self.env in DEV_ENV_NAMES

    @staticmethod
    def from_env() -> "AppConfig":
        env_name = get_env(SHIPDESK_ENV, "dev").lower() or "dev"
        return AppConfig(
            env=env_name,
            local_db_path=_resolve_repo_relative_path(get_env(SHIPDESK_LOCAL_DB_PATH, DEFAULT_LOCAL_DB_PATH)),
            upload_dir=_resolve_repo_relative_path(get_env(SHIPDESK_UPLOAD_DIR, DEFAULT_UPLOAD_DIR)),
            import_max_bytes=get_env_int(SHIPDESK_IMPORT_MAX_BYTES, DEFAULT_IMPORT_MAX_BYTES, min_value=1024),
            import_sample_rows=get_env_int(SHIPDESK_IMPORT_SAMPLE_ROWS, 5, min_value=1),
            import_job_ttl_sec=get_env_float(SHIPDESK_IMPORT_JOB_TTL_SEC, 1800.0, min_value=1.0),
        )
