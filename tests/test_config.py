from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.core.config import DEFAULT_IMPORT_MAX_BYTES, AppConfig


def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "SHIPDESK_ENV",
        "SHIPDESK_LOCAL_DB_PATH",
        "SHIPDESK_UPLOAD_DIR",
        "SHIPDESK_IMPORT_MAX_BYTES",
        "SHIPDESK_IMPORT_SAMPLE_ROWS",
        "SHIPDESK_IMPORT_JOB_TTL_SEC",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)

    config = AppConfig.from_env()

    assert config.env == "dev"
    assert config.is_dev_env is True
    assert config.import_max_bytes == DEFAULT_IMPORT_MAX_BYTES
    assert config.import_sample_rows == 5
    assert Path(config.local_db_path).is_absolute()
    assert config.upload_dir.endswith(str(Path("uploads") / "temp"))


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("SHIPDESK_ENV", "PROD")
    monkeypatch.setenv("SHIPDESK_LOCAL_DB_PATH", str(tmp_path / "desk.db"))
    monkeypatch.setenv("SHIPDESK_IMPORT_SAMPLE_ROWS", "10")
    monkeypatch.setenv("SHIPDESK_IMPORT_MAX_BYTES", "not-a-number")

    config = AppConfig.from_env()

    assert config.env == "prod"
    assert config.is_dev_env is False
    assert config.local_db_path == str(tmp_path / "desk.db")
    assert config.import_sample_rows == 10
    assert config.import_max_bytes == DEFAULT_IMPORT_MAX_BYTES


def test_numeric_settings_are_clamped(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("SHIPDESK_IMPORT_SAMPLE_ROWS", "0")
    monkeypatch.setenv("SHIPDESK_IMPORT_JOB_TTL_SEC", "-5")

    config = AppConfig.from_env()

    assert config.import_sample_rows == 1
    assert config.import_job_ttl_sec == 1.0
