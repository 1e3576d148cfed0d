from __future__ import annotations

import copy
import json
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..models.rule import RuleDescriptor, RuleSuggestion, RuleType

logger = logging.getLogger(__name__)

"""Rule book: capture, remove and export rule descriptors.

Creation checks only that a known rule type and a non-empty name are given;
parameter shapes belong to the form layer. The free-text suggester is a
keyword classifier that returns a draft (or None) and is never authoritative.
"""

__all__ = [
    "RULE_CATALOG",
    "RuleBook",
    "RuleCatalogEntry",
    "RuleValidationError",
    "suggest_rule",
]

CONFIG_VERSION = "1.0"
GENERATED_BY = "Resource Forge"


class RuleValidationError(Exception):
    """Raised when a rule is created without a valid type or name."""
    pass


@dataclass(frozen=True)
class RuleCatalogEntry:
    type: RuleType
    label: str
    description: str
    default_parameters: dict[str, Any]


RULE_CATALOG: dict[RuleType, RuleCatalogEntry] = {
    entry.type: entry
    for entry in (
        RuleCatalogEntry(RuleType.CO_RUN, "Co-Run Tasks", "Tasks that must run together", {"tasks": []}),
        RuleCatalogEntry(RuleType.SLOT_RESTRICTION, "Slot Restriction", "Limit common time slots", {}),
        RuleCatalogEntry(
            RuleType.LOAD_LIMIT,
            "Load Limit",
            "Maximum workload per phase",
            {"workerGroup": "", "maxSlotsPerPhase": 2},
        ),
        RuleCatalogEntry(
            RuleType.PHASE_WINDOW,
            "Phase Window",
            "Restrict tasks to specific phases",
            {"taskId": "", "allowedPhases": [1, 2, 3]},
        ),
        RuleCatalogEntry(RuleType.PATTERN_MATCH, "Pattern Match", "Rule based on patterns", {}),
        RuleCatalogEntry(
            RuleType.PRECEDENCE_OVERRIDE, "Precedence Override", "Override rule priorities", {}
        ),
    )
}


def _coerce_rule_type(rule_type: RuleType | str | None) -> RuleType:
    if isinstance(rule_type, RuleType):
        return rule_type
    if not rule_type:
        raise RuleValidationError("Please provide rule type and name")
    try:
        return RuleType(rule_type)
    except ValueError:
        raise RuleValidationError(f"Unknown rule type: {rule_type!r}") from None


class RuleBook:
    """Ordered, process-local collection of rule descriptors.

    Priority is ``len(rules) + 1`` at insertion and is never renumbered, so
    removing a rule leaves a gap.
    """

    def __init__(self, rules: list[RuleDescriptor] | None = None) -> None:
        self._rules: list[RuleDescriptor] = list(rules or [])

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(list(self._rules))

    @property
    def rules(self) -> list[RuleDescriptor]:
        return list(self._rules)

    def add(
        self,
        rule_type: RuleType | str | None,
        name: str | None,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> RuleDescriptor:
        kind = _coerce_rule_type(rule_type)
        if not name or not name.strip():
            raise RuleValidationError("Please provide rule type and name")
        rule = RuleDescriptor(
            id=self._next_id(),
            type=kind,
            name=name.strip(),
            description=description or "",
            parameters=dict(parameters or {}),
            priority=len(self._rules) + 1,
        )
        self._rules.append(rule)
        logger.info(f"rule added: {rule.name} ({rule.type.value}) priority={rule.priority}")
        return rule

    def _next_id(self) -> str:
        base = f"rule-{time.time_ns() // 1_000_000}"
        taken = {r.id for r in self._rules}
        if base not in taken:
            return base
        # 同一ミリ秒内の連続追加
        n = 2
        while f"{base}-{n}" in taken:
            n += 1
        return f"{base}-{n}"

    def accept(self, suggestion: RuleSuggestion) -> RuleDescriptor:
        return self.add(suggestion.type, suggestion.name, suggestion.description, suggestion.parameters)

    def remove(self, rule_id: str) -> bool:
        """Remove every rule with ``rule_id``; True when something was removed."""
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.id != rule_id]
        removed = len(self._rules) != before
        if removed:
            logger.info(f"rule removed: {rule_id}")
        return removed

    def to_config(self) -> dict[str, Any]:
        """Export document: rules plus a metadata block."""
        return {
            "version": CONFIG_VERSION,
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "rules": [r.to_dict() for r in self._rules],
            "metadata": {
                "totalRules": len(self._rules),
                "ruleTypes": list(dict.fromkeys(r.type.value for r in self._rules)),
                "generatedBy": GENERATED_BY,
            },
        }

    def write_config(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_config(), indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    @classmethod
    def from_dicts(cls, items: list[dict[str, Any]]) -> RuleBook:
        """Build a rule book from config entries (``type``, ``name``, ...)."""
        book = cls()
        for item in items:
            book.add(
                item.get("type"),
                item.get("name"),
                item.get("description", ""),
                item.get("parameters"),
            )
        return book


# keyword buckets, checked in order
_SUGGESTION_BUCKETS: list[tuple[RuleType, tuple[str, ...], str, str]] = [
    (
        RuleType.CO_RUN,
        ("together", "same time", "co-run"),
        "AI Generated Co-Run Rule",
        "Tasks should run together based on",
    ),
    (
        RuleType.LOAD_LIMIT,
        ("not work more than", "limit", "maximum"),
        "AI Generated Load Limit",
        "Load limit based on",
    ),
    (
        RuleType.PHASE_WINDOW,
        ("only in phase", "restrict to"),
        "AI Generated Phase Window",
        "Phase restriction based on",
    ),
]


def suggest_rule(text: str | None) -> RuleSuggestion | None:
    """Suggest a rule draft from free text, or None when nothing matches.

    Best effort only: parameters are the catalog defaults and must be filled
    in (and checked) by the caller.
    """
    if not text or not text.strip():
        return None
    lower = text.lower()
    for rule_type, keywords, name, prefix in _SUGGESTION_BUCKETS:
        if any(k in lower for k in keywords):
            return RuleSuggestion(
                type=rule_type,
                name=name,
                description=f"{prefix}: {text[:100]}...",
                parameters=copy.deepcopy(RULE_CATALOG[rule_type].default_parameters),
            )
    return None
