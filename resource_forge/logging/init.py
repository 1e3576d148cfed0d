from __future__ import annotations

import logging
import sys
from collections.abc import Iterable

from resource_forge.models.diagnostic import Diagnostic

"""Logging initialization with labeled prefixes.

Every line the CLI prints goes through the ``resource_forge`` logger and is
prefixed with its label:
- INFO / WARN / ERROR for ordinary messages
- SUMMARY for the final quality summary line (custom level 25)

Library modules log through ``logging.getLogger(__name__)`` and reach this
handler because they live under the ``resource_forge`` namespace.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "log_diagnostics",
    "format_diagnostic",
    "reset_logging",
]

LOGGER_NAME = "resource_forge"

# Custom SUMMARY level (between INFO=20 and WARNING=30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Formats records as ``LABEL message``."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        level_label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        return f"{level_label} {record.getMessage()}"


def setup_logging(debug: bool = False) -> logging.Logger:
    """Configure the application logger (idempotent).

    Args:
        debug: lower logger and handler to DEBUG

    Returns:
        The ``resource_forge`` logger writing to stdout
    """
    global _logger

    if _logger is not None:
        if debug:
            _set_level(_logger, logging.DEBUG)
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")

    logger = logging.getLogger(LOGGER_NAME)

    # Clear any existing handlers to avoid duplication
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    _set_level(logger, logging.DEBUG if debug else logging.INFO)

    # Prevent propagation to root logger to avoid duplicate output
    logger.propagate = False

    _logger = logger
    return logger


def _set_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)


def get_logger() -> logging.Logger:
    """Get the configured application logger, configuring it on first use."""
    if _logger is None:
        return setup_logging()
    return _logger


def log_summary(message: str) -> None:
    """Log a message at SUMMARY level."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Reset the global logger state. Mainly for testing purposes."""
    global _logger
    _logger = None


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """``<entity> <entity_id> <field>: <message>`` (plus `` (<suggestion>)`` when present)."""
    line = f"{diagnostic.entity.value} {diagnostic.entity_id} {diagnostic.field}: {diagnostic.message}"
    if diagnostic.suggestion:
        line += f" ({diagnostic.suggestion})"
    return line


def log_diagnostics(diagnostics: Iterable[Diagnostic]) -> tuple[int, int]:
    """Log each diagnostic at ERROR or WARNING; returns (errors, warnings)."""
    logger = get_logger()
    errors = warnings = 0
    for d in diagnostics:
        if d.is_error:
            logger.error(format_diagnostic(d))
            errors += 1
        else:
            logger.warning(format_diagnostic(d))
            warnings += 1
    return errors, warnings
