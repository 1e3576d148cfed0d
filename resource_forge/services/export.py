from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.diagnostic import Diagnostic
from ..models.entities import EntityRecord
from .rules import RuleBook

logger = logging.getLogger(__name__)

"""Export of canonical entity collections (CSV) and rule configuration (JSON).

Export is gated on the number of error diagnostics of the latest run
(ingestion + validation). The gate is enforced only while the caller's
validate-before-export toggle is on.
"""

__all__ = [
    "ExportBlockedError",
    "check_export_gate",
    "count_errors",
    "entities_frame",
    "export_datasets",
    "export_rules",
    "RULES_FILE_NAME",
]

RULES_FILE_NAME = "rules-config.json"


class ExportBlockedError(Exception):
    """Raised when exporting while validation errors exist."""

    def __init__(self, error_count: int) -> None:
        super().__init__(f"Cannot export while validation errors exist ({error_count} error(s))")
        self.error_count = error_count


def count_errors(diagnostics: Sequence[Diagnostic]) -> int:
    return sum(1 for d in diagnostics if d.is_error)


def check_export_gate(diagnostics: Sequence[Diagnostic], validate_before_export: bool = True) -> None:
    """Raise ExportBlockedError when error diagnostics exist and the toggle is on.

    Warnings (advisories, mapping notes) never block.
    """
    error_count = count_errors(diagnostics)
    if not error_count:
        return
    if not validate_before_export:
        logger.warning(f"exporting with {error_count} validation error(s) (validation gate off)")
        return
    raise ExportBlockedError(error_count)


def _cell(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False)
    return value


def entities_frame(records: Sequence[EntityRecord], clean: bool = True) -> pd.DataFrame:
    """Tabular view of records keyed by canonical field names.

    Sequences are comma-joined, structured values JSON-encoded. With ``clean``
    UI-internal columns (leading ``_``) are dropped.
    """
    rows = [{k: _cell(v) for k, v in r.to_row().items()} for r in records]
    df = pd.DataFrame(rows)
    if clean and not df.empty:
        df = df[[c for c in df.columns if not str(c).startswith("_")]]
    return df


def export_datasets(
    datasets: Mapping[str, Sequence[EntityRecord]],
    output_dir: Path,
    clean: bool = True,
) -> list[Path]:
    """Write ``<label>.csv`` per non-empty dataset; returns written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for label, records in datasets.items():
        if not records:
            logger.info(f"export: no {label} data to export")
            continue
        path = output_dir / f"{label}.csv"
        entities_frame(records, clean=clean).to_csv(path, index=False)
        logger.info(f"export: {label} -> {path} ({len(records)} rows)")
        written.append(path)
    return written


def export_rules(rule_book: RuleBook, output_dir: Path) -> Path | None:
    if not len(rule_book):
        logger.info("export: no rules configured")
        return None
    path = rule_book.write_config(output_dir / RULES_FILE_NAME)
    logger.info(f"export: rules -> {path} ({len(rule_book)} rules)")
    return path
