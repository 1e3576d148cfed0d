from __future__ import annotations

import json
from pathlib import Path

from resource_forge.cli import main as cli_main

"""Diagnostics log contract: JSON Lines with a fixed key set."""

REQUIRED_KEYS = {"id", "severity", "entity", "entityId", "field", "message", "suggestion"}


def _log_entries(temp_workdir: Path) -> list[dict]:
    logs = sorted((temp_workdir / "logs").glob("diagnostics-*.log"))
    assert logs, "diagnostics log not written"
    return [json.loads(line) for p in logs for line in p.read_text(encoding="utf-8").splitlines()]


def test_diagnostic_log_schema(write_config, broken_tasks_csv, temp_workdir: Path):
    cli_main([])
    entries = _log_entries(temp_workdir)
    for obj in entries:
        assert set(obj.keys()) == REQUIRED_KEYS
        assert obj["severity"] in {"error", "warning"}
        assert obj["entity"] in {"client", "worker", "task"}
    errors = [e for e in entries if e["severity"] == "error"]
    assert [e["id"] for e in errors] == ["task-T1-Duration-row1-range"]
    assert errors[0]["message"] == "Row 1: Duration must be at least 1"


def test_unknown_entity_id_is_logged_as_unknown(write_config, sample_csv_files, temp_workdir: Path):
    f = sample_csv_files["workers"]
    f.write_text(f.read_text(encoding="utf-8") + ",Nameless,ops,1,1,beta,1\n", encoding="utf-8")
    assert cli_main([]) == 2
    entries = _log_entries(temp_workdir)
    missing = [e for e in entries if e["severity"] == "error"]
    assert {e["entityId"] for e in missing} == {"unknown"}
    assert {e["field"] for e in missing} == {"WorkerID"}
