from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from shipment_desk_app.infrastructure.logging import _JsonFormatter, _TextFormatter, record_context


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="shipment_desk_app.imports.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Import executed. rows=%s",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_record_context_lifts_shared_keys_and_groups_the_rest() -> None:
    record = _record(event="import_executed", file_reference="abc.csv", rows=3, failed=1)

    assert record_context(record) == {
        "event": "import_executed",
        "file_reference": "abc.csv",
        "details": {"rows": 3, "failed": 1},
    }
    assert record_context(_record()) == {}


def test_json_formatter_emits_context_fields_at_top_level() -> None:
    line = _JsonFormatter().format(_record(event="field_updated", field_key="awb", request_id=""))
    payload = json.loads(line)

    assert payload["message"] == "Import executed. rows=3"
    assert payload["level"] == "INFO"
    assert payload["event"] == "field_updated"
    assert payload["field_key"] == "awb"
    assert "request_id" not in payload
    assert "details" not in payload


def test_text_formatter_appends_context_suffix() -> None:
    formatter = _TextFormatter("%(levelname)s %(message)s")

    assert formatter.format(_record(event="shipment_created", shipment_id=7, items=2)) == (
        "INFO Import executed. rows=3 [event=shipment_created shipment_id=7]"
    )
    assert formatter.format(_record()) == "INFO Import executed. rows=3"
