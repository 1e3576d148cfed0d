from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from resource_forge.models.diagnostic import Diagnostic, EntityKind, Severity
from resource_forge.models.entities import ClientRecord, WorkerRecord
from resource_forge.models.rule import RuleType
from resource_forge.services.export import (
    RULES_FILE_NAME,
    ExportBlockedError,
    check_export_gate,
    entities_frame,
    export_datasets,
    export_rules,
)
from resource_forge.services.rules import RuleBook

"""Export gate, CSV export and rules export tests."""

ERROR = Diagnostic.create(Severity.ERROR, EntityKind.TASK, "T1", "Duration", "range", "bad")
WARNING = Diagnostic.create(Severity.WARNING, EntityKind.TASK, "T1", "Duration", "skills", "meh")


def test_gate_blocks_on_errors():
    with pytest.raises(ExportBlockedError) as exc:
        check_export_gate([ERROR, WARNING, ERROR])
    assert exc.value.error_count == 2
    assert "Cannot export while validation errors exist" in str(exc.value)


def test_gate_ignores_warnings_and_toggle_off():
    check_export_gate([WARNING])
    check_export_gate([])
    check_export_gate([ERROR], validate_before_export=False)


def test_entities_frame_flattens_and_cleans():
    records = [
        ClientRecord(
            client_id="C1",
            client_name="Acme",
            requested_task_ids=("T1", "T2"),
            attributes={"tier": "gold"},
            extra={"_rowId": 7, "Notes": "vip"},
        )
    ]
    df = entities_frame(records)
    assert list(df.columns) == [
        "ClientID",
        "ClientName",
        "PriorityLevel",
        "RequestedTaskIDs",
        "GroupTag",
        "AttributesJSON",
        "Notes",
    ]
    row = df.iloc[0]
    assert row["RequestedTaskIDs"] == "T1,T2"
    assert json.loads(row["AttributesJSON"]) == {"tier": "gold"}
    assert "_rowId" in entities_frame(records, clean=False).columns


def test_export_datasets_skips_empty(tmp_path: Path):
    out = tmp_path / "out"
    written = export_datasets(
        {
            "clients": [],
            "workers": [WorkerRecord(worker_id="W1", worker_name="Ann", skills=("python",), available_slots=(1, 2))],
        },
        out,
    )
    assert written == [out / "workers.csv"]
    df = pd.read_csv(out / "workers.csv", dtype=str)
    assert df.loc[0, "AvailableSlots"] == "1,2"
    assert df.loc[0, "Skills"] == "python"


def test_export_rules(tmp_path: Path):
    assert export_rules(RuleBook(), tmp_path) is None
    book = RuleBook()
    book.add(RuleType.SLOT_RESTRICTION, "Shared slots")
    path = export_rules(book, tmp_path)
    assert path == tmp_path / RULES_FILE_NAME
    assert json.loads(path.read_text(encoding="utf-8"))["metadata"]["ruleTypes"] == ["slotRestriction"]
