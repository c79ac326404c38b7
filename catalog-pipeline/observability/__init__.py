"""Observability infrastructure for the catalog pipeline.

Provides structured, context-aware logging.
"""

from .logger import (
    LogContext,
    PrettyFormatter,
    StructuredFormatter,
    current_context,
    get_logger,
    log_context,
    setup_logging,
)

__all__ = [
    "LogContext",
    "PrettyFormatter",
    "StructuredFormatter",
    "current_context",
    "get_logger",
    "log_context",
    "setup_logging",
]
