from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from resource_forge.models.diagnostic import Diagnostic

"""Diagnostics log buffering.

- JSON Lines, fixed key set (see Diagnostic.to_dict)
- one ``diagnostics-YYYYMMDD-HHMMSS.log`` (UTC) per run, created on first flush
- buffered in memory and written in one go on flush()
"""

__all__ = [
    "DiagnosticLogBuffer",
]

DEFAULT_LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class DiagnosticLogBuffer:
    """In-memory buffer of diagnostics. Flush appends JSON Lines to the run's log file.

    Single-threaded use only.
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[Diagnostic] = []
        self._logs_dir = logs_dir if logs_dir is not None else DEFAULT_LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"diagnostics-{stamp}.log"
        return self._file_path

    def append(self, record: Diagnostic) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[Diagnostic]) -> None:
        self._records.extend(records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered diagnostics; returns the log path, or None when there was nothing to write."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
