"""Persisted schemas."""

from nodeflow.schemas.run_state import NodeRef, RunState, RunStatus

__all__ = ["RunState", "RunStatus", "NodeRef"]
