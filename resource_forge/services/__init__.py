"""Validation, cross-reference, rules, export and pipeline services."""
