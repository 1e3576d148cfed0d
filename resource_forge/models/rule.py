from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Rule descriptor models.

Rules are captured and exported as configuration for a downstream scheduler;
nothing in this package executes or solves them. Parameter shapes are owned by
the form layer and are not validated here.
"""

__all__ = [
    "RuleType",
    "RuleDescriptor",
    "RuleSuggestion",
]


class RuleType(Enum):
    """Closed set of recognized constraint kinds."""
    CO_RUN = "coRun"
    SLOT_RESTRICTION = "slotRestriction"
    LOAD_LIMIT = "loadLimit"
    PHASE_WINDOW = "phaseWindow"
    PATTERN_MATCH = "patternMatch"
    PRECEDENCE_OVERRIDE = "precedenceOverride"


@dataclass(frozen=True)
class RuleDescriptor:
    """Typed, serializable constraint definition.

    ``priority`` is the insertion rank (1-based) at creation time and is never
    renumbered when other rules are removed.
    """
    id: str  # rule-<epoch ms>
    type: RuleType
    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)
    priority: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "parameters": dict(self.parameters),
            "priority": self.priority,
        }


@dataclass(frozen=True)
class RuleSuggestion:
    """Best-effort rule draft from the free-text suggester (no id/priority yet)."""
    type: RuleType
    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)
