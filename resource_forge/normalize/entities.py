from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.diagnostic import Diagnostic, EntityKind, Severity
from ..models.entities import ClientRecord, EntityRecord, TaskRecord, WorkerRecord
from ..models.row_result import RowResult
from .coercers import (
    is_blank,
    parse_int,
    to_array_field,
    to_number_array_field,
    to_structured_field,
    to_text,
)
from .headers import HEADER_SYNONYMS, HeaderMapping, apply_mapping, reconcile_headers

logger = logging.getLogger(__name__)

"""Entity normalizer: reconciled raw row -> canonical entity record.

One pure processor per entity kind. Each returns a RowResult carrying the
record and the structural diagnostics raised for that row (missing
identifier/name, unparsable numerics, the per-kind range check). The dataset
normalizer folds row results together; an exception while processing a row
is converted into a single processing-error diagnostic for that row and the
remaining rows are still processed.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "NormalizedDataset",
    "normalize_client",
    "normalize_worker",
    "normalize_task",
    "normalize_row",
    "normalize_dataset",
]

CANONICAL_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    kind: tuple(dict.fromkeys(table.values())) for kind, table in HEADER_SYNONYMS.items()
}


class _RowContext:
    """Collects diagnostics for a single row being normalized."""

    def __init__(self, kind: EntityKind, index: int) -> None:
        self.kind = kind
        self.row_number = index + 1
        self.entity_id = ""
        self.diagnostics: list[Diagnostic] = []

    def error(self, field_name: str, check: str, message: str, suggestion: str | None = None) -> None:
        self.diagnostics.append(
            Diagnostic.create(
                severity=Severity.ERROR,
                entity=self.kind,
                entity_id=self.entity_id,
                field=field_name,
                check=f"row{self.row_number}-{check}",
                message=f"Row {self.row_number}: {message}",
                suggestion=suggestion,
            )
        )

    def required_text(self, row: dict[str, Any], field_name: str) -> str:
        value = to_text(row.get(field_name))
        if not value:
            self.error(field_name, "missing", f"Missing {field_name}")
        return value

    def int_field(self, row: dict[str, Any], field_name: str, fallback: int) -> int:
        """Parse an integer field; fallback (with an error) only when the value is present but unparsable."""
        raw = row.get(field_name)
        if is_blank(raw):
            return fallback
        parsed = parse_int(raw)
        if parsed is None:
            self.error(
                field_name,
                "type",
                f"{field_name} must be a number (got {raw!r}); using {fallback}",
            )
            return fallback
        return parsed


def _extra(row: dict[str, Any], kind: EntityKind) -> dict[str, Any]:
    canonical = CANONICAL_FIELDS[kind]
    return {k: v for k, v in row.items() if k not in canonical}


def normalize_client(row: dict[str, Any], index: int) -> RowResult:
    ctx = _RowContext(EntityKind.CLIENT, index)
    ctx.entity_id = to_text(row.get("ClientID"))
    client_id = ctx.required_text(row, "ClientID")
    client_name = ctx.required_text(row, "ClientName")
    priority = ctx.int_field(row, "PriorityLevel", 1)
    if priority < 1 or priority > 5:
        ctx.error("PriorityLevel", "range", "PriorityLevel must be between 1-5")
    record = ClientRecord(
        client_id=client_id,
        client_name=client_name,
        priority_level=priority,
        requested_task_ids=tuple(to_array_field(row.get("RequestedTaskIDs"))),
        group_tag=to_text(row.get("GroupTag")),
        attributes=to_structured_field(row.get("AttributesJSON")),
        extra=_extra(row, EntityKind.CLIENT),
        raw_values=dict(row),
        row_number=ctx.row_number,
    )
    return RowResult(row_number=ctx.row_number, record=record, diagnostics=tuple(ctx.diagnostics))


def normalize_worker(row: dict[str, Any], index: int) -> RowResult:
    ctx = _RowContext(EntityKind.WORKER, index)
    ctx.entity_id = to_text(row.get("WorkerID"))
    worker_id = ctx.required_text(row, "WorkerID")
    worker_name = ctx.required_text(row, "WorkerName")
    max_load = ctx.int_field(row, "MaxLoadPerPhase", 0)
    if max_load < 0:
        ctx.error("MaxLoadPerPhase", "range", "MaxLoadPerPhase must be non-negative")
    record = WorkerRecord(
        worker_id=worker_id,
        worker_name=worker_name,
        skills=tuple(to_array_field(row.get("Skills"))),
        available_slots=tuple(to_number_array_field(row.get("AvailableSlots"))),
        max_load_per_phase=max_load,
        worker_group=to_text(row.get("WorkerGroup")),
        qualification_level=ctx.int_field(row, "QualificationLevel", 1),
        extra=_extra(row, EntityKind.WORKER),
        raw_values=dict(row),
        row_number=ctx.row_number,
    )
    return RowResult(row_number=ctx.row_number, record=record, diagnostics=tuple(ctx.diagnostics))


def normalize_task(row: dict[str, Any], index: int) -> RowResult:
    ctx = _RowContext(EntityKind.TASK, index)
    ctx.entity_id = to_text(row.get("TaskID"))
    task_id = ctx.required_text(row, "TaskID")
    task_name = ctx.required_text(row, "TaskName")
    duration = ctx.int_field(row, "Duration", 1)
    if duration < 1:
        ctx.error("Duration", "range", "Duration must be at least 1")
    record = TaskRecord(
        task_id=task_id,
        task_name=task_name,
        category=to_text(row.get("Category")),
        duration=duration,
        required_skills=tuple(to_array_field(row.get("RequiredSkills"))),
        preferred_phases=tuple(to_number_array_field(row.get("PreferredPhases"))),
        max_concurrent=ctx.int_field(row, "MaxConcurrent", 1),
        extra=_extra(row, EntityKind.TASK),
        raw_values=dict(row),
        row_number=ctx.row_number,
    )
    return RowResult(row_number=ctx.row_number, record=record, diagnostics=tuple(ctx.diagnostics))


_PROCESSORS: dict[EntityKind, Callable[[dict[str, Any], int], RowResult]] = {
    EntityKind.CLIENT: normalize_client,
    EntityKind.WORKER: normalize_worker,
    EntityKind.TASK: normalize_task,
}


def normalize_row(
    kind: EntityKind,
    row: Any,
    index: int,
    mapping: HeaderMapping | None = None,
) -> RowResult:
    """Rewrite (optional) and normalize one row, never raising.

    Any exception is downgraded to one ``Row <n>: Processing error`` diagnostic
    and the row yields no record.
    """
    try:
        if mapping is not None:
            row = apply_mapping([row], mapping)[0]
        return _PROCESSORS[kind](row, index)
    except Exception as e:
        logger.debug(f"{kind.dataset}: row {index + 1} failed: {e!r}")
        diag = Diagnostic.create(
            severity=Severity.ERROR,
            entity=kind,
            entity_id=None,
            field=kind.id_field,
            check=f"row{index + 1}-processing",
            message=f"Row {index + 1}: Processing error: {e}",
        )
        return RowResult(row_number=index + 1, record=None, diagnostics=(diag,))


@dataclass
class NormalizedDataset:
    """Result of normalizing one dataset (all rows of one entity kind)."""
    kind: EntityKind
    records: list[EntityRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)  # row-level structural
    mapping: HeaderMapping | None = None
    invalid_rows: list[int] = field(default_factory=list)  # 1-based rows with an error

    @property
    def mapping_diagnostics(self) -> list[Diagnostic]:
        return list(self.mapping.diagnostics) if self.mapping is not None else []

    @property
    def all_diagnostics(self) -> list[Diagnostic]:
        return self.mapping_diagnostics + self.diagnostics


def normalize_dataset(kind: EntityKind, rows: Sequence[Any]) -> NormalizedDataset:
    """Reconcile headers from the first row, then normalize every row.

    Steps:
    1. Build the header mapping from the first row's key set
    2. Rewrite and normalize each row independently
    3. Fold RowResults into records + diagnostics
    """
    if not rows:
        return NormalizedDataset(kind=kind, mapping=HeaderMapping(kind=kind, mapping={}))

    first = rows[0]
    headers = list(first.keys()) if isinstance(first, dict) else []
    mapping = reconcile_headers(headers, kind)

    dataset = NormalizedDataset(kind=kind, mapping=mapping)
    for index, row in enumerate(rows):
        result = normalize_row(kind, row, index, mapping)
        if result.record is not None:
            dataset.records.append(result.record)
        dataset.diagnostics.extend(result.diagnostics)
        if result.invalid:
            dataset.invalid_rows.append(result.row_number)

    logger.debug(
        f"{kind.dataset}: rows={len(rows)} records={len(dataset.records)} "
        f"invalid_rows={len(dataset.invalid_rows)} row_issues={len(dataset.diagnostics)} "
        f"mapping_notes={len(mapping.diagnostics)}"
    )
    return dataset
