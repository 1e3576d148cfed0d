from __future__ import annotations

from resource_forge.models.entities import ClientRecord, TaskRecord, WorkerRecord
from resource_forge.services.cross_reference import check_cross_references, split_reference_tokens


def test_split_reference_tokens():
    assert split_reference_tokens("T1, T2;T3") == ["T1", "T2", "T3"]
    assert split_reference_tokens(["T1;T2", " T3 ", ""]) == ["T1", "T2", "T3"]
    assert split_reference_tokens(None) == []
    assert split_reference_tokens(";,") == []


def test_unknown_requested_task_after_semicolon_split():
    clients = [ClientRecord(client_id="C1", client_name="Acme", requested_task_ids=("T1;T9",))]
    tasks = [TaskRecord(task_id="T1", task_name="Build")]
    found = check_cross_references(clients, [], tasks)
    assert len(found) == 1
    d = found[0]
    assert d.is_error
    assert d.message == "Task ID T9 not found in uploaded Tasks"
    assert d.id == "client-C1-RequestedTaskIDs-ref-T9"


def test_every_unknown_token_is_reported():
    clients = [ClientRecord(client_id="C1", client_name="Acme", requested_task_ids=("T8", "T9"))]
    assert len(check_cross_references(clients, [], [])) == 2


def test_assigned_worker_must_exist():
    workers = [WorkerRecord(worker_id="W1", worker_name="Ann")]
    tasks = [
        TaskRecord(task_id="T1", task_name="Build", extra={"AssignedWorkerID": "W1"}),
        TaskRecord(task_id="T2", task_name="Test", extra={"AssignedWorkerID": "W7"}),
        TaskRecord(task_id="T3", task_name="Ship", extra={"AssignedWorkerID": None}),
    ]
    found = check_cross_references([], workers, tasks)
    assert [d.message for d in found] == ["Assigned Worker ID W7 not found in uploaded Workers"]
    assert found[0].entity_id == "T2"
