from __future__ import annotations

from dataclasses import dataclass

from .diagnostic import Diagnostic
from .entities import EntityRecord

"""RowResult model: outcome of normalizing a single raw row.

Per-row processors return a RowResult instead of appending to shared
accumulator lists; the dataset normalizer folds the results together.
"""

__all__ = [
    "RowResult",
]


@dataclass(frozen=True)
class RowResult:
    """Normalized record (if any) plus the diagnostics raised for one row.

    ``record`` is None when the row raised during processing; the row is then
    represented only by its processing-error diagnostic.
    """
    row_number: int  # 1-based data row
    record: EntityRecord | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def invalid(self) -> bool:
        return any(d.is_error for d in self.diagnostics)
