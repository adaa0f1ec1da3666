"""
Observability: run-correlated structured logging.

- Run key and node id propagate automatically via ContextVar
- JSON logs for production, human-readable logs for development
"""

from nodeflow.observability.logging import (
    clear_trace_context,
    configure_logging,
    get_trace_context,
    set_trace_context,
)

__all__ = [
    "configure_logging",
    "get_trace_context",
    "set_trace_context",
    "clear_trace_context",
]
