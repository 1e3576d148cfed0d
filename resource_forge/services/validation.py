from __future__ import annotations

import logging
import math
import numbers
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.diagnostic import Diagnostic, EntityKind, Severity
from ..models.entities import ClientRecord, TaskRecord, WorkerRecord
from ..models.quality_summary import QualitySummary
from ..normalize.coercers import is_blank, parse_int, to_array_field
from .cross_reference import check_cross_references

logger = logging.getLogger(__name__)

"""Validation engine over the three normalized collections.

Passes run in a fixed order; each is independent and only appends
diagnostics. Order affects display sequence only.

1. required identifier presence
2. parseability (Task.Duration present and numeric as uploaded)
3. duplicate identifiers per collection
4. value ranges (Task.Duration in [1, 24], warning)
5. skill coverage (task RequiredSkills vs union of worker Skills, warning)
6. worker capacity (assigned durations vs declared capacity, warning)
7. heuristic hook (``extra_passes``, empty by default)

The cross-reference checker runs alongside in ``validate_collections`` and
its diagnostics are part of the same quality score.
"""

__all__ = [
    "DataValidator",
    "ValidationReport",
    "compute_quality",
    "validate_collections",
    "DURATION_RANGE",
]

DURATION_RANGE = (1, 24)

HeuristicPass = Callable[["DataValidator"], Iterable[Diagnostic]]


def _is_numeric(raw: Any) -> bool:
    if isinstance(raw, bool):
        return False
    if isinstance(raw, numbers.Integral):
        return True
    if isinstance(raw, numbers.Real):
        return not math.isnan(float(raw))
    if isinstance(raw, str):
        try:
            return not math.isnan(float(raw.strip()))
        except ValueError:
            return False
    return False


def compute_quality(total_records: int, diagnostics: Sequence[Diagnostic]) -> QualitySummary:
    """Quality = round(max(0, 100 - issues / records * 100)); 100 when there are no records.

    Rounding is half-up (79.5 -> 80).
    """
    issues = len(diagnostics)
    if total_records == 0:
        quality = 100.0
    else:
        quality = max(0.0, 100.0 - (issues / total_records) * 100.0)
    errors = sum(1 for d in diagnostics if d.is_error)
    return QualitySummary(
        total_records=total_records,
        issues=issues,
        data_quality=f"{math.floor(quality + 0.5)}%",
        errors=errors,
        warnings=issues - errors,
    )


class DataValidator:
    """Runs the ordered validation passes over clients, workers and tasks."""

    def __init__(
        self,
        clients: Sequence[ClientRecord] | None = None,
        workers: Sequence[WorkerRecord] | None = None,
        tasks: Sequence[TaskRecord] | None = None,
        *,
        extra_passes: Sequence[HeuristicPass] = (),
    ) -> None:
        self.clients = list(clients or [])
        self.workers = list(workers or [])
        self.tasks = list(tasks or [])
        self.extra_passes = list(extra_passes)

    @property
    def total_records(self) -> int:
        return len(self.clients) + len(self.workers) + len(self.tasks)

    def run(self) -> list[Diagnostic]:
        results: list[Diagnostic] = []
        for check in (
            self.validate_required_fields,
            self.validate_data_types,
            self.validate_duplicate_ids,
            self.validate_value_ranges,
            self.validate_skill_coverage,
            self.validate_worker_capacity,
            self.validate_heuristics,
        ):
            found = check()
            logger.debug(f"validation pass {check.__name__}: {len(found)} finding(s)")
            results.extend(found)
        return results

    def validate(self) -> tuple[list[Diagnostic], QualitySummary]:
        results = self.run()
        return results, compute_quality(self.total_records, results)

    def validate_required_fields(self) -> list[Diagnostic]:
        errors: list[Diagnostic] = []
        collections: list[tuple[EntityKind, Sequence[Any]]] = [
            (EntityKind.CLIENT, self.clients),
            (EntityKind.WORKER, self.workers),
            (EntityKind.TASK, self.tasks),
        ]
        for kind, records in collections:
            for record in records:
                if record.identifier:
                    continue
                errors.append(
                    Diagnostic.create(
                        severity=Severity.ERROR,
                        entity=kind,
                        entity_id=None,
                        field=kind.id_field,
                        check=f"row{record.row_number}-required",
                        message=f"Missing {kind.id_field}",
                    )
                )
        return errors

    def validate_data_types(self) -> list[Diagnostic]:
        errors: list[Diagnostic] = []
        for task in self.tasks:
            raw = task.raw_values.get("Duration") if task.raw_values is not None else task.duration
            if is_blank(raw):
                message = "Duration is required and must be a number"
            elif not _is_numeric(raw):
                message = "Duration must be a number"
            else:
                continue
            errors.append(
                Diagnostic.create(
                    severity=Severity.ERROR,
                    entity=EntityKind.TASK,
                    entity_id=task.task_id,
                    field="Duration",
                    check="type",
                    message=message,
                )
            )
        return errors

    def validate_duplicate_ids(self) -> list[Diagnostic]:
        errors: list[Diagnostic] = []

        def check_duplicates(kind: EntityKind, ids: Iterable[str]) -> None:
            counts = Counter(i for i in ids if i)
            for identifier, count in counts.items():
                if count < 2:
                    continue
                errors.append(
                    Diagnostic.create(
                        severity=Severity.ERROR,
                        entity=kind,
                        entity_id=identifier,
                        field=kind.id_field,
                        check="duplicate",
                        message=f"Duplicate {kind.id_field}: {identifier}",
                        suggestion="Each ID must be unique",
                    )
                )

        check_duplicates(EntityKind.CLIENT, (c.client_id for c in self.clients))
        check_duplicates(EntityKind.WORKER, (w.worker_id for w in self.workers))
        check_duplicates(EntityKind.TASK, (t.task_id for t in self.tasks))
        return errors

    def validate_value_ranges(self) -> list[Diagnostic]:
        low, high = DURATION_RANGE
        warnings: list[Diagnostic] = []
        for task in self.tasks:
            if low <= task.duration <= high:
                continue
            warnings.append(
                Diagnostic.create(
                    severity=Severity.WARNING,
                    entity=EntityKind.TASK,
                    entity_id=task.task_id,
                    field="Duration",
                    check="range",
                    message=f"Duration out of expected range ({low}-{high})",
                    suggestion="Adjust duration to a valid range",
                )
            )
        return warnings

    def validate_skill_coverage(self) -> list[Diagnostic]:
        worker_skills = {skill for w in self.workers for skill in w.skills}
        warnings: list[Diagnostic] = []
        for task in self.tasks:
            missing = [s for s in dict.fromkeys(task.required_skills) if s not in worker_skills]
            if not missing:
                continue
            warnings.append(
                Diagnostic.create(
                    severity=Severity.WARNING,
                    entity=EntityKind.TASK,
                    entity_id=task.task_id,
                    field="RequiredSkills",
                    check="skills",
                    message=f"Missing skill coverage: {', '.join(missing)}",
                    suggestion="Ensure workers have all required skills",
                )
            )
        return warnings

    def validate_worker_capacity(self) -> list[Diagnostic]:
        assignments: Counter[str] = Counter()
        for task in self.tasks:
            for worker_id in dict.fromkeys(to_array_field(task.extra.get("AssignedWorkers"))):
                assignments[worker_id] += task.duration

        warnings: list[Diagnostic] = []
        for worker in self.workers:
            load = assignments.get(worker.worker_id, 0)
            capacity_field, capacity = self._capacity(worker)
            if load <= capacity:
                continue
            warnings.append(
                Diagnostic.create(
                    severity=Severity.WARNING,
                    entity=EntityKind.WORKER,
                    entity_id=worker.worker_id,
                    field=capacity_field,
                    check="load",
                    message=f"Overload: assigned {load} vs. max {capacity} ({capacity_field})",
                    suggestion=f"Reassign tasks or increase {capacity_field}",
                )
            )
        return warnings

    @staticmethod
    def _capacity(worker: WorkerRecord) -> tuple[str, int]:
        # MaxHours は任意列 (passthrough)。宣言があればそちらを優先
        declared = parse_int(worker.extra.get("MaxHours"))
        if declared is not None:
            return "MaxHours", declared
        return "MaxLoadPerPhase", worker.max_load_per_phase

    def validate_heuristics(self) -> list[Diagnostic]:
        found: list[Diagnostic] = []
        for heuristic in self.extra_passes:
            found.extend(heuristic(self))
        return found


@dataclass(frozen=True)
class ValidationReport:
    """Diagnostics and quality summary for one validation run."""
    diagnostics: list[Diagnostic]
    summary: QualitySummary
    cross_reference: list[Diagnostic] = field(default_factory=list)

    def grouped(self) -> dict[str, list[Diagnostic]]:
        """Diagnostics grouped by dataset label (clients / workers / tasks)."""
        groups: dict[str, list[Diagnostic]] = {kind.dataset: [] for kind in EntityKind}
        for d in self.diagnostics:
            groups[d.entity.dataset].append(d)
        return groups


def validate_collections(
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
    *,
    extra_passes: Sequence[HeuristicPass] = (),
) -> ValidationReport:
    """Run the engine passes plus the cross-reference checker.

    The summary counts every diagnostic from both, each once. Every call
    builds a fresh report; nothing is carried over from earlier runs.
    """
    validator = DataValidator(clients, workers, tasks, extra_passes=extra_passes)
    engine_results = validator.run()
    cross = check_cross_references(validator.clients, validator.workers, validator.tasks)
    diagnostics = engine_results + cross
    summary = compute_quality(validator.total_records, diagnostics)
    logger.debug(
        f"validation: records={summary.total_records} issues={summary.issues} "
        f"cross_reference={len(cross)}"
    )
    return ValidationReport(diagnostics=diagnostics, summary=summary, cross_reference=cross)
