"""Domain models for the resource-forge ingestion and validation pipeline.

This package contains the value types shared by the normalizer, the
validation engine, the rule book and the export layer.
"""

from .diagnostic import Diagnostic, EntityKind, Severity
from .entities import ClientRecord, EntityRecord, TaskRecord, WorkerRecord
from .quality_summary import QualitySummary
from .row_result import RowResult
from .rule import RuleDescriptor, RuleSuggestion, RuleType

__all__ = [
    # Diagnostics
    "Diagnostic",
    "EntityKind",
    "Severity",
    # Entities
    "ClientRecord",
    "WorkerRecord",
    "TaskRecord",
    "EntityRecord",
    "RowResult",
    # Results
    "QualitySummary",
    # Rules
    "RuleDescriptor",
    "RuleSuggestion",
    "RuleType",
]
