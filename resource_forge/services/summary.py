from __future__ import annotations

from ..models.quality_summary import QualitySummary

"""SUMMARY line rendering for the quality summary."""


def render_summary_line(summary: QualitySummary) -> str:
    """Render the SUMMARY line for one validation run.

    Format:
    SUMMARY records={total} issues={issues} errors={errors} warnings={warnings} quality={NN}%

    Examples:
        >>> s = QualitySummary(total_records=10, issues=2, data_quality="80%", errors=1, warnings=1)
        >>> render_summary_line(s)
        'SUMMARY records=10 issues=2 errors=1 warnings=1 quality=80%'
    """
    return (
        f"SUMMARY records={summary.total_records} "
        f"issues={summary.issues} "
        f"errors={summary.errors} "
        f"warnings={summary.warnings} "
        f"quality={summary.data_quality}"
    )
