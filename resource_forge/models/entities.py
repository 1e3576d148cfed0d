from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .diagnostic import EntityKind

"""Canonical entity records produced by the normalizer.

Each record carries the canonical typed fields of its kind, the passthrough
columns the header reconciler kept as-is (``extra``) and the reconciled raw
row (``raw_values``) for checks that need to look at the value as uploaded.
"""

__all__ = [
    "ClientRecord",
    "WorkerRecord",
    "TaskRecord",
    "EntityRecord",
]


@dataclass(frozen=True)
class ClientRecord:
    """A client requesting tasks."""
    client_id: str
    client_name: str
    priority_level: int = 1  # 1..5
    requested_task_ids: tuple[str, ...] = ()
    group_tag: str = ""
    attributes: Any = field(default_factory=dict)  # AttributesJSON
    extra: dict[str, Any] = field(default_factory=dict)
    raw_values: dict[str, Any] | None = None
    row_number: int = 0  # 1-based data row

    kind = EntityKind.CLIENT

    @property
    def identifier(self) -> str:
        return self.client_id

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "ClientID": self.client_id,
            "ClientName": self.client_name,
            "PriorityLevel": self.priority_level,
            "RequestedTaskIDs": list(self.requested_task_ids),
            "GroupTag": self.group_tag,
            "AttributesJSON": self.attributes,
        }
        row.update(self.extra)
        return row


@dataclass(frozen=True)
class WorkerRecord:
    """A worker with skills and per-phase availability."""
    worker_id: str
    worker_name: str
    skills: tuple[str, ...] = ()
    available_slots: tuple[int, ...] = ()  # phase numbers
    max_load_per_phase: int = 0
    worker_group: str = ""
    qualification_level: int = 1
    extra: dict[str, Any] = field(default_factory=dict)
    raw_values: dict[str, Any] | None = None
    row_number: int = 0

    kind = EntityKind.WORKER

    @property
    def identifier(self) -> str:
        return self.worker_id

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "WorkerID": self.worker_id,
            "WorkerName": self.worker_name,
            "Skills": list(self.skills),
            "AvailableSlots": list(self.available_slots),
            "MaxLoadPerPhase": self.max_load_per_phase,
            "WorkerGroup": self.worker_group,
            "QualificationLevel": self.qualification_level,
        }
        row.update(self.extra)
        return row


@dataclass(frozen=True)
class TaskRecord:
    """A unit of work requiring skills over one or more phases."""
    task_id: str
    task_name: str
    category: str = ""
    duration: int = 1  # phases, >= 1
    required_skills: tuple[str, ...] = ()
    preferred_phases: tuple[int, ...] = ()
    max_concurrent: int = 1
    extra: dict[str, Any] = field(default_factory=dict)
    raw_values: dict[str, Any] | None = None
    row_number: int = 0

    kind = EntityKind.TASK

    @property
    def identifier(self) -> str:
        return self.task_id

    def to_row(self) -> dict[str, Any]:
        row: dict[str, Any] = {
            "TaskID": self.task_id,
            "TaskName": self.task_name,
            "Category": self.category,
            "Duration": self.duration,
            "RequiredSkills": list(self.required_skills),
            "PreferredPhases": list(self.preferred_phases),
            "MaxConcurrent": self.max_concurrent,
        }
        row.update(self.extra)
        return row


EntityRecord = Union[ClientRecord, WorkerRecord, TaskRecord]
