from __future__ import annotations

from dataclasses import dataclass

"""Quality summary model.

Derived value, recomputed from scratch on every validation run.
"""

__all__ = [
    "QualitySummary",
]


@dataclass(frozen=True)
class QualitySummary:
    """Aggregate data quality for one validation run."""
    total_records: int  # clients + workers + tasks
    issues: int  # every diagnostic, counted once
    data_quality: str  # integer percentage, e.g. "80%"
    errors: int = 0
    warnings: int = 0

    @property
    def quality_percent(self) -> int:
        return int(self.data_quality.rstrip("%"))

    def to_dict(self) -> dict[str, object]:
        return {
            "totalRecords": self.total_records,
            "issues": self.issues,
            "dataQuality": self.data_quality,
            "errors": self.errors,
            "warnings": self.warnings,
        }
