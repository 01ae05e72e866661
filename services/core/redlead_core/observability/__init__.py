"""Observability package for structured logging."""

from redlead_core.observability.logging import (
    JsonFormatter,
    StructuredLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "JsonFormatter",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]
