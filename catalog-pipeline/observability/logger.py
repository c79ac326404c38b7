"""Structured logger for the catalog pipeline.

Provides context-aware logging with optional JSON formatting.

Usage:
    from observability import get_logger, log_context

    logger = get_logger(__name__)

    with log_context(category="smartphones", phase="paginate"):
        logger.info("Starting pagination", extra={"total_pages": 3})
        # Output: {"timestamp": "...", "category": "smartphones", "phase": "paginate", ...}
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rate_limit.progress import ProgressReporter

NAMESPACE = "catalog_pipeline"

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


@dataclass
class LogContext:
    """Context for structured logging.

    Attributes are automatically included in all log messages
    within this context.
    """

    category: str | None = None
    phase: str | None = None
    batch_index: int | None = None
    batch_size: int | None = None
    page: int | None = None
    correlation_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


_log_context: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "log_context",
    default=LogContext(),
)


def current_context() -> LogContext:
    """Return the log context active in this task."""
    return _log_context.get()


class _ContextManager:
    """Context manager for setting log context."""

    def __init__(self, **kwargs: Any) -> None:
        unknown = set(kwargs) - {f.name for f in fields(LogContext)}
        if unknown:
            raise TypeError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
        self.kwargs = kwargs
        self.token: contextvars.Token[LogContext] | None = None

    def __enter__(self) -> LogContext:
        current = _log_context.get()
        # Merge with current context
        merged = {**asdict(current), **self.kwargs}
        new_context = LogContext(**merged)
        self.token = _log_context.set(new_context)
        return new_context

    def __exit__(self, *args: Any) -> None:
        if self.token is not None:
            _log_context.reset(self.token)


def log_context(**kwargs: Any) -> _ContextManager:
    """Create a context manager for setting log context.

    Args:
        **kwargs: Context fields to set (category, phase, page, etc.)

    Returns:
        Context manager that sets the context

    Example:
        with log_context(category="smartphones", phase="session"):
            logger.info("Acquiring credentials")
    """
    return _ContextManager(**kwargs)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class StructuredFormatter(logging.Formatter):
    """JSON formatter with context support."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()

        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(ctx.to_dict())
        entry.update(_extra_fields(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class PrettyFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        ctx = _log_context.get()

        color = self.COLORS.get(record.levelname, "") if self.use_color else ""
        reset = self.RESET if self.use_color else ""

        prefix_parts = []
        if ctx.category:
            prefix_parts.append(f"[{ctx.category}]")
        if ctx.phase:
            prefix_parts.append(f"[{ctx.phase}]")
        if ctx.batch_index is not None:
            prefix_parts.append(f"[batch {ctx.batch_index}]")
        if ctx.page is not None:
            prefix_parts.append(f"[p{ctx.page}]")

        prefix = " ".join(prefix_parts)
        if prefix:
            prefix += " "

        timestamp = datetime.now().strftime("%H:%M:%S")
        level = record.levelname[:4]
        message = record.getMessage()

        extras = [f"{key}={value}" for key, value in _extra_fields(record).items()]
        extra_str = " | " + ", ".join(extras) if extras else ""

        formatted = f"{timestamp} {color}{level}{reset} {prefix}{message}{extra_str}"

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


_logging_configured = False


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    quiet: bool = False,
    reporter: ProgressReporter | None = None,
    force: bool = False,
) -> None:
    """Set up logging for the pipeline.

    Args:
        level: Logging level (default: INFO)
        json_format: Use JSON format (default: False, use pretty format)
        quiet: Suppress all output except errors (default: False)
        reporter: Route records through this progress reporter so they
            do not tear the live progress bar
        force: Reconfigure even if logging was already set up
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    root = logging.getLogger(NAMESPACE)
    root.setLevel(level)
    root.propagate = False

    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler: logging.Handler
    if reporter is not None:
        from rate_limit.progress import ProgressLogHandler

        handler = ProgressLogHandler(reporter)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.ERROR if quiet else level)

    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(PrettyFormatter(use_color=reporter is None))

    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger under the catalog_pipeline namespace
    """
    # Ensure logging is set up with defaults
    setup_logging()

    if not name.startswith(NAMESPACE):
        name = f"{NAMESPACE}.{name}"

    return logging.getLogger(name)
