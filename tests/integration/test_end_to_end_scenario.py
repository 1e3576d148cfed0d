from __future__ import annotations

from resource_forge.models.diagnostic import Severity
from resource_forge.services.export import ExportBlockedError
from resource_forge.services.pipeline import export_result, run_validation
from resource_forge.services.rules import RuleBook

import pytest

"""Raw rows in, diagnostics + quality summary out (no files involved)."""

CLIENTS = [{"ClientID": "C1", "ClientName": "Acme", "PriorityLevel": "9", "RequestedTaskIDs": "T1,T2"}]
TASKS = [{"TaskID": "T1", "TaskName": "Build", "Duration": "0"}]


def test_priority_duration_and_reference_errors():
    result = run_validation({"clients": CLIENTS, "workers": [], "tasks": TASKS})

    ingestion_ids = [d.id for d in result.ingestion_diagnostics]
    assert ingestion_ids == ["client-C1-PriorityLevel-row1-range", "task-T1-Duration-row1-range"]

    # "0" はパース可能なので既定値は適用されない
    assert result.tasks[0].duration == 0
    assert result.clients[0].priority_level == 9

    cross = result.report.cross_reference
    assert len(cross) == 1
    assert cross[0].message == "Task ID T2 not found in uploaded Tasks"
    assert cross[0].severity is Severity.ERROR

    engine = [d for d in result.report.diagnostics if d not in cross]
    assert [d.message for d in engine] == ["Duration out of expected range (1-24)"]

    summary = result.report.summary
    assert summary.total_records == 2
    assert summary.issues == 2
    assert summary.data_quality == "0%"
    assert result.error_count == 3


def test_errors_block_export(tmp_path):
    result = run_validation({"clients": CLIENTS, "tasks": TASKS})
    with pytest.raises(ExportBlockedError) as exc:
        export_result(result, RuleBook(), tmp_path / "out")
    assert exc.value.error_count == 3
    assert not (tmp_path / "out").exists()


def test_fixing_rows_and_rerunning_replaces_results():
    first = run_validation({"clients": CLIENTS, "tasks": TASKS})
    fixed_clients = [dict(CLIENTS[0], PriorityLevel="2", RequestedTaskIDs="T1")]
    fixed_tasks = [dict(TASKS[0], Duration="3")]
    second = run_validation({"clients": fixed_clients, "tasks": fixed_tasks})
    assert first.error_count == 3
    assert second.error_count == 0
    assert second.report.summary.data_quality == "100%"
