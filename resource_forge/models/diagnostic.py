from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

"""Diagnostic model for validation findings.

A Diagnostic is a single, immutable finding produced by the normalizer, the
validation passes or the cross-reference checker. The id is derived from
(entity, entity_id, field, check) so that re-running validation over the same
data yields the same ids; ids group findings for display and are not required
to be globally unique.
"""

__all__ = [
    "Diagnostic",
    "EntityKind",
    "Severity",
    "UNKNOWN_ENTITY_ID",
]

UNKNOWN_ENTITY_ID = "unknown"


class Severity(Enum):
    """Diagnostic severity.

    - ERROR: blocks export
    - WARNING: advisory only
    """
    ERROR = "error"
    WARNING = "warning"


class EntityKind(Enum):
    """The three canonical entity kinds.

    The value doubles as the ``entity`` string carried by diagnostics.
    """
    CLIENT = "client"
    WORKER = "worker"
    TASK = "task"

    @property
    def id_field(self) -> str:
        return _ID_FIELDS[self]

    @property
    def name_field(self) -> str:
        return _NAME_FIELDS[self]

    @property
    def dataset(self) -> str:
        """Plural label used for datasets, grouping and export file names."""
        return f"{self.value}s"


_ID_FIELDS = {
    EntityKind.CLIENT: "ClientID",
    EntityKind.WORKER: "WorkerID",
    EntityKind.TASK: "TaskID",
}
_NAME_FIELDS = {
    EntityKind.CLIENT: "ClientName",
    EntityKind.WORKER: "WorkerName",
    EntityKind.TASK: "TaskName",
}


@dataclass(frozen=True)
class Diagnostic:
    """Structured validation finding.

    Attributes:
        id: Stable grouping key ``{entity}-{entity_id}-{field}-{check}``
        severity: ERROR or WARNING
        entity: Entity kind the finding refers to
        entity_id: Identifier of the offending record ("unknown" if absent)
        field: Canonical field (or original header for mapping advisories)
        message: Human readable description
        suggestion: Optional remediation hint
    """
    id: str
    severity: Severity
    entity: EntityKind
    entity_id: str
    field: str
    message: str
    suggestion: str | None = None

    @staticmethod
    def create(
        severity: Severity,
        entity: EntityKind,
        entity_id: str | None,
        field: str,
        check: str,
        message: str,
        suggestion: str | None = None,
    ) -> Diagnostic:
        """Create a Diagnostic with an id derived from its coordinates.

        Parameters:
            severity: ERROR or WARNING
            entity: Entity kind
            entity_id: Record identifier; empty/None becomes "unknown"
            field: Field the finding is about
            check: Short name of the check that produced it (e.g. "duplicate")
            message: Human readable description
            suggestion: Optional remediation hint
        """
        eid = entity_id or UNKNOWN_ENTITY_ID
        return Diagnostic(
            id=f"{entity.value}-{eid}-{field}-{check}",
            severity=severity,
            entity=entity,
            entity_id=eid,
            field=field,
            message=message,
            suggestion=suggestion,
        )

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, object]:
        """Wire representation used by grid display and the diagnostics log."""
        return {
            "id": self.id,
            "severity": self.severity.value,
            "entity": self.entity.value,
            "entityId": self.entity_id,
            "field": self.field,
            "message": self.message,
            "suggestion": self.suggestion,
        }

    def to_json_line(self) -> str:
        """Serialize to a single JSON Lines record (fixed key set)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)
