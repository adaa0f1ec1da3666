"""
Structured logging with automatic run context propagation.

The engine records the run key and the node being stepped in a ContextVar;
every log record emitted while a run is in progress carries them, whether it
comes from the engine or from the application's callbacks:

    WorkflowEngine.start() -> sets run_key
        GraphExecutor.iterate_nodes() -> sets node_id at every step
            callback -> logger.info("...") gets run_key and node_id

Two output modes: JSON for production, colored human-readable text for
development.
"""

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# ContextVar is async-safe: concurrent runs in one process keep separate context
trace_context: ContextVar[dict[str, Any] | None] = ContextVar("trace_context", default=None)

# Record attributes copied into JSON output when passed via extra=
_EXTRA_FIELDS = ("event", "node_id", "route")


class StructuredFormatter(logging.Formatter):
    """JSON formatter: one object per line with run context merged in."""

    def format(self, record: logging.LogRecord) -> str:
        context = trace_context.get() or {}

        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(context)

        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Colorized single-line formatter prefixed with the run key and node."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        context = trace_context.get() or {}

        prefix_parts = []
        if context.get("run_key"):
            prefix_parts.append(f"run:{context['run_key']}")
        if context.get("node_id"):
            prefix_parts.append(f"node:{context['node_id']}")
        context_prefix = f"[{' | '.join(prefix_parts)}] " if prefix_parts else ""

        color = self.COLORS.get(record.levelname, "")
        level = f"{record.levelname:<8}"
        message = f"{color}[{level}]{self.RESET} {context_prefix}{record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def configure_logging(
    level: str = "INFO",
    format: str = "auto",  # "json", "human", or "auto"
) -> None:
    """
    Configure logging for the application. Call once at startup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json", "human", or "auto" (JSON if LOG_FORMAT=json or
            ENV=production, else human)
    """
    if format == "auto":
        log_format_env = os.getenv("LOG_FORMAT", "").lower()
        env = os.getenv("ENV", "development").lower()
        format = "json" if log_format_env == "json" or env == "production" else "human"

    formatter = StructuredFormatter() if format == "json" else HumanReadableFormatter()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())


def set_trace_context(**kwargs: Any) -> None:
    """
    Merge fields into the trace context of the current execution.

    Framework-managed: the engine sets run_key and node_id.
    """
    current = trace_context.get() or {}
    trace_context.set({**current, **kwargs})


def get_trace_context() -> dict:
    """Return a copy of the current trace context (empty if unset)."""
    context = trace_context.get() or {}
    return context.copy()


def clear_trace_context() -> None:
    """Clear trace context, mostly useful between tests."""
    trace_context.set(None)
