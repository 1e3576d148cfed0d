"""Labeled console logging and the diagnostics JSON Lines log."""
