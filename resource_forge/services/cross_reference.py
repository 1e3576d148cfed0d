from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any

from ..models.diagnostic import Diagnostic, EntityKind, Severity
from ..models.entities import ClientRecord, TaskRecord, WorkerRecord
from ..normalize.coercers import is_blank, to_text

"""Cross-reference checker: referential integrity across the three collections.

Client.RequestedTaskIDs tokens must resolve to a known TaskID and a task's
AssignedWorkerID must resolve to a known WorkerID. Lookups go through id sets
built once per run.
"""

__all__ = [
    "split_reference_tokens",
    "check_cross_references",
]

_TOKEN_SEPARATORS = re.compile(r"[,;]")


def split_reference_tokens(value: Any) -> list[str]:
    """Split a reference list on ``,`` or ``;``.

    Accepts a raw string or an already-split sequence (whose elements may
    still contain ``;``). Tokens are trimmed; blanks are dropped.
    """
    if is_blank(value):
        return []
    parts: Iterable[Any] = value if isinstance(value, (list, tuple)) else [value]
    tokens: list[str] = []
    for part in parts:
        for token in _TOKEN_SEPARATORS.split(to_text(part)):
            token = token.strip()
            if token:
                tokens.append(token)
    return tokens


def check_cross_references(
    clients: Sequence[ClientRecord],
    workers: Sequence[WorkerRecord],
    tasks: Sequence[TaskRecord],
) -> list[Diagnostic]:
    """Return one error per unresolved reference.

    - every RequestedTaskIDs token on every client must exist among task ids
    - every task's AssignedWorkerID (when set) must exist among worker ids
    """
    task_ids = {t.task_id for t in tasks if t.task_id}
    worker_ids = {w.worker_id for w in workers if w.worker_id}
    diagnostics: list[Diagnostic] = []

    for client in clients:
        for task_id in split_reference_tokens(client.requested_task_ids):
            if task_id in task_ids:
                continue
            diagnostics.append(
                Diagnostic.create(
                    severity=Severity.ERROR,
                    entity=EntityKind.CLIENT,
                    entity_id=client.client_id,
                    field="RequestedTaskIDs",
                    check=f"ref-{task_id}",
                    message=f"Task ID {task_id} not found in uploaded Tasks",
                    suggestion="Reference a valid TaskID",
                )
            )

    for task in tasks:
        assigned = to_text(task.extra.get("AssignedWorkerID"))
        if assigned and assigned not in worker_ids:
            diagnostics.append(
                Diagnostic.create(
                    severity=Severity.ERROR,
                    entity=EntityKind.TASK,
                    entity_id=task.task_id,
                    field="AssignedWorkerID",
                    check=f"ref-{assigned}",
                    message=f"Assigned Worker ID {assigned} not found in uploaded Workers",
                    suggestion="Reference a valid WorkerID",
                )
            )

    return diagnostics
