from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import ForgeConfig
from ..excel.reader import DecodeError, read_rows
from ..logging.diagnostic_log import DiagnosticLogBuffer
from ..models.diagnostic import Diagnostic, EntityKind
from ..models.entities import ClientRecord, EntityRecord, TaskRecord, WorkerRecord
from ..normalize.entities import NormalizedDataset, normalize_dataset
from .export import check_export_gate, count_errors, export_datasets, export_rules
from .progress import ProgressTracker
from .rules import RuleBook
from .validation import HeuristicPass, ValidationReport, validate_collections

logger = logging.getLogger(__name__)

"""End-to-end pipeline: decode -> normalize -> validate -> cross-reference.

Each run takes the three full datasets and returns a fresh PipelineResult;
re-running with updated rows replaces the previous result entirely.
Decode failures abort only the dataset whose file failed; that dataset is
then treated as empty.
"""

__all__ = [
    "DatasetStat",
    "PipelineError",
    "PipelineResult",
    "run_validation",
    "run_pipeline",
    "export_result",
]


class PipelineError(Exception):
    """Fatal pipeline error (nothing could be processed)."""
    pass


@dataclass(frozen=True)
class DatasetStat:
    """Per-dataset ingestion statistics."""
    label: str  # clients / workers / tasks
    source: str | None  # file path (None when rows were handed in directly)
    status: str  # success / failed / missing
    raw_rows: int = 0
    records: int = 0
    error: str | None = None  # decode failure reason


@dataclass(frozen=True)
class PipelineResult:
    """Everything a run produced, for display and export collaborators."""
    datasets: dict[EntityKind, NormalizedDataset]
    report: ValidationReport
    dataset_stats: list[DatasetStat] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def clients(self) -> list[ClientRecord]:
        return self._records(EntityKind.CLIENT)  # type: ignore[return-value]

    @property
    def workers(self) -> list[WorkerRecord]:
        return self._records(EntityKind.WORKER)  # type: ignore[return-value]

    @property
    def tasks(self) -> list[TaskRecord]:
        return self._records(EntityKind.TASK)  # type: ignore[return-value]

    def _records(self, kind: EntityKind) -> list[EntityRecord]:
        ds = self.datasets.get(kind)
        return list(ds.records) if ds is not None else []

    @property
    def ingestion_diagnostics(self) -> list[Diagnostic]:
        """Header mapping advisories and row-level structural diagnostics."""
        out: list[Diagnostic] = []
        for kind in EntityKind:
            ds = self.datasets.get(kind)
            if ds is not None:
                out.extend(ds.all_diagnostics)
        return out

    @property
    def all_diagnostics(self) -> list[Diagnostic]:
        return self.ingestion_diagnostics + self.report.diagnostics

    @property
    def error_count(self) -> int:
        return count_errors(self.all_diagnostics)

    @property
    def export_allowed(self) -> bool:
        # ingestion errors block too; same count as check_export_gate
        return self.error_count == 0

    @property
    def decode_failures(self) -> dict[str, str]:
        return {s.label: s.error or "" for s in self.dataset_stats if s.status == "failed"}

    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def records_by_label(self) -> dict[str, list[EntityRecord]]:
        return {kind.dataset: self._records(kind) for kind in EntityKind}

    def invalid_rows_by_label(self) -> dict[str, list[int]]:
        """1-based data rows that raised at least one ingestion error, per dataset."""
        return {kind.dataset: list(ds.invalid_rows) for kind, ds in self.datasets.items() if ds.invalid_rows}


def _coerce_kind(key: EntityKind | str) -> EntityKind:
    if isinstance(key, EntityKind):
        return key
    for kind in EntityKind:
        if key in (kind.value, kind.dataset):
            return kind
    raise PipelineError(f"unknown dataset: {key!r}")


def run_validation(
    rows_by_kind: Mapping[EntityKind | str, Sequence[Any]],
    *,
    extra_passes: Sequence[HeuristicPass] = (),
    dataset_stats: list[DatasetStat] | None = None,
) -> PipelineResult:
    """Normalize raw rows for each kind and validate the three collections.

    ``rows_by_kind`` may be keyed by EntityKind or by label ("clients" or
    "client"); missing kinds are treated as empty datasets.
    """
    start_time = datetime.now(UTC)
    rows: dict[EntityKind, Sequence[Any]] = {kind: [] for kind in EntityKind}
    for key, value in rows_by_kind.items():
        rows[_coerce_kind(key)] = value or []

    datasets = {kind: normalize_dataset(kind, rows[kind]) for kind in EntityKind}
    report = validate_collections(
        datasets[EntityKind.CLIENT].records,  # type: ignore[arg-type]
        datasets[EntityKind.WORKER].records,  # type: ignore[arg-type]
        datasets[EntityKind.TASK].records,  # type: ignore[arg-type]
        extra_passes=extra_passes,
    )
    if dataset_stats is not None:
        stats = [replace(s, records=len(datasets[_coerce_kind(s.label)].records)) for s in dataset_stats]
    else:
        stats = [
            DatasetStat(
                label=kind.dataset,
                source=None,
                status="success",
                raw_rows=len(rows[kind]),
                records=len(datasets[kind].records),
            )
            for kind in EntityKind
        ]
    return PipelineResult(
        datasets=datasets,
        report=report,
        dataset_stats=stats,
        start_time=start_time,
        end_time=datetime.now(UTC),
    )


def run_pipeline(config: ForgeConfig, *, extra_passes: Sequence[HeuristicPass] = ()) -> PipelineResult:
    """Decode the configured files and run normalization + validation.

    Steps:
    1. Decode each configured dataset (tqdm progress on TTY)
    2. Record decode failures per dataset and continue with the others
    3. Normalize + validate (run_validation)
    4. Flush every diagnostic to the JSON Lines diagnostics log

    Raises:
        PipelineError: when no dataset is configured at all
    """
    if not config.inputs:
        raise PipelineError("no input datasets configured")

    rows: dict[EntityKind, list[dict[str, Any]]] = {}
    stats: list[DatasetStat] = []

    with ProgressTracker(len(EntityKind), description="Ingesting datasets") as progress:
        for kind in EntityKind:
            progress.start(kind.dataset)
            path = config.inputs.get(kind.dataset)
            if path is None:
                logger.info(f"{kind.dataset}: no input configured, treating as empty")
                stats.append(DatasetStat(label=kind.dataset, source=None, status="missing"))
                rows[kind] = []
                progress.finish()
                continue
            try:
                dataset = read_rows(Path(path), keep_na_strings=config.keep_na_strings)
            except DecodeError as e:
                logger.error(f"{kind.dataset}: {path}: {e}")
                stats.append(DatasetStat(label=kind.dataset, source=str(path), status="failed", error=str(e)))
                rows[kind] = []
                progress.finish(failed=kind.dataset)
                continue
            rows[kind] = dataset.rows
            logger.info(f"{kind.dataset}: loaded {len(dataset.rows)} rows from {path}")
            stats.append(
                DatasetStat(label=kind.dataset, source=str(path), status="success", raw_rows=len(dataset.rows))
            )
            progress.finish(rows=len(dataset.rows))

    result = run_validation(rows, extra_passes=extra_passes, dataset_stats=stats)

    log_buffer = DiagnosticLogBuffer(config.logs_directory)
    log_buffer.extend(result.all_diagnostics)
    try:
        log_path = log_buffer.flush()
    except OSError as e:
        logger.warning(f"diagnostics log could not be written: {e}")
    else:
        if log_path is not None:
            logger.info(f"diagnostics written to {log_path}")

    return result


def export_result(
    result: PipelineResult,
    rule_book: RuleBook,
    output_dir: Path,
    *,
    validate_before_export: bool = True,
    clean: bool = True,
) -> list[Path]:
    """Export canonical datasets (CSV) and rules (JSON) behind the export gate.

    Raises:
        ExportBlockedError: errors exist and ``validate_before_export`` is on
    """
    check_export_gate(result.all_diagnostics, validate_before_export)
    written = export_datasets(result.records_by_label(), output_dir, clean=clean)
    rules_path = export_rules(rule_book, output_dir)
    if rules_path is not None:
        written.append(rules_path)
    return written
