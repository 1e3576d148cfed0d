from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..models.diagnostic import Diagnostic, EntityKind, Severity

"""Header reconciliation: arbitrary column names -> canonical field names.

Headers are normalized (lower-case, non-alphanumerics stripped) and looked up
in a per-kind synonym table. A miss is not an error: the column is kept as-is
and a warning is raised so the passthrough value stays available to later
checks (e.g. ``AssignedWorkers``).
"""

__all__ = [
    "HEADER_SYNONYMS",
    "HeaderMapping",
    "normalize_header",
    "reconcile_headers",
    "apply_mapping",
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")

# normalized synonym -> canonical field
HEADER_SYNONYMS: dict[EntityKind, dict[str, str]] = {
    EntityKind.CLIENT: {
        "clientid": "ClientID",
        "id": "ClientID",
        "clientname": "ClientName",
        "name": "ClientName",
        "prioritylevel": "PriorityLevel",
        "priority": "PriorityLevel",
        "requestedtaskids": "RequestedTaskIDs",
        "tasks": "RequestedTaskIDs",
        "taskids": "RequestedTaskIDs",
        "grouptag": "GroupTag",
        "group": "GroupTag",
        "attributesjson": "AttributesJSON",
        "attributes": "AttributesJSON",
        "metadata": "AttributesJSON",
    },
    EntityKind.WORKER: {
        "workerid": "WorkerID",
        "id": "WorkerID",
        "workername": "WorkerName",
        "name": "WorkerName",
        "skills": "Skills",
        "skill": "Skills",
        "availableslots": "AvailableSlots",
        "slots": "AvailableSlots",
        "availability": "AvailableSlots",
        "maxloadperphase": "MaxLoadPerPhase",
        "maxload": "MaxLoadPerPhase",
        "capacity": "MaxLoadPerPhase",
        "workergroup": "WorkerGroup",
        "group": "WorkerGroup",
        "qualificationlevel": "QualificationLevel",
        "qualification": "QualificationLevel",
        "level": "QualificationLevel",
    },
    EntityKind.TASK: {
        "taskid": "TaskID",
        "id": "TaskID",
        "taskname": "TaskName",
        "name": "TaskName",
        "category": "Category",
        "type": "Category",
        "duration": "Duration",
        "length": "Duration",
        "time": "Duration",
        "requiredskills": "RequiredSkills",
        "skills": "RequiredSkills",
        "skillrequirements": "RequiredSkills",
        "preferredphases": "PreferredPhases",
        "phases": "PreferredPhases",
        "preferredslots": "PreferredPhases",
        "maxconcurrent": "MaxConcurrent",
        "concurrency": "MaxConcurrent",
        "parallel": "MaxConcurrent",
    },
}


@dataclass(frozen=True)
class HeaderMapping:
    """Original header -> resolved header, plus mapping advisories."""
    kind: EntityKind
    mapping: dict[str, str]
    diagnostics: tuple[Diagnostic, ...] = field(default_factory=tuple)

    @property
    def unknown_columns(self) -> list[str]:
        table = HEADER_SYNONYMS[self.kind]
        return [h for h in self.mapping if normalize_header(h) not in table]


def normalize_header(name: Any) -> str:
    """Lower-case and strip every non-alphanumeric character."""
    return _NON_ALNUM.sub("", str(name).lower())


def _advisory(kind: EntityKind, header: str, check: str, message: str) -> Diagnostic:
    return Diagnostic.create(
        severity=Severity.WARNING,
        entity=kind,
        entity_id="header",
        field=header,
        check=check,
        message=message,
    )


def reconcile_headers(headers: Iterable[Any], kind: EntityKind) -> HeaderMapping:
    """Resolve each header against the synonym table for ``kind``.

    Advisories:
    - ``Mapped column "X" to "Y"`` when a hit differs from the original name
    - ``Unknown column "X" - keeping as-is`` on a miss
    - a duplicate-target warning when two headers resolve to the same field
      (the later column wins when rows are rewritten)
    """
    table = HEADER_SYNONYMS[kind]
    mapping: dict[str, str] = {}
    diagnostics: list[Diagnostic] = []
    claimed: dict[str, str] = {}  # resolved -> first original header

    for raw_header in headers:
        header = str(raw_header)
        resolved = table.get(normalize_header(header))
        if resolved is None:
            mapping[header] = header
            diagnostics.append(
                _advisory(kind, header, "unknown-column", f'Unknown column "{header}" - keeping as-is')
            )
            continue
        mapping[header] = resolved
        if header != resolved:
            diagnostics.append(
                _advisory(kind, header, "mapped-column", f'Mapped column "{header}" to "{resolved}"')
            )
        if resolved in claimed:
            diagnostics.append(
                _advisory(
                    kind,
                    header,
                    "duplicate-column",
                    f'Columns "{claimed[resolved]}" and "{header}" both map to "{resolved}"; '
                    f'using "{header}"',
                )
            )
        else:
            claimed[resolved] = header

    return HeaderMapping(kind=kind, mapping=mapping, diagnostics=tuple(diagnostics))


def apply_mapping(rows: Iterable[dict[str, Any]], mapping: HeaderMapping) -> list[dict[str, Any]]:
    """Rewrite every row with the resolved header names.

    Keys that were not present in the first row pass through unchanged.
    """
    out: list[dict[str, Any]] = []
    for row in rows:
        new_row: dict[str, Any] = {}
        for key, value in row.items():
            new_row[mapping.mapping.get(str(key), str(key))] = value
        out.append(new_row)
    return out
