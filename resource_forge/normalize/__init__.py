"""Header reconciliation, field coercion and per-entity row normalization."""

from .entities import NormalizedDataset, normalize_dataset, normalize_row
from .headers import HeaderMapping, reconcile_headers

__all__ = [
    "HeaderMapping",
    "NormalizedDataset",
    "normalize_dataset",
    "normalize_row",
    "reconcile_headers",
]
