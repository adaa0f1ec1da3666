"""Run lifecycle: start, play, pause, resume and stop keyed runs."""

from nodeflow.runtime.engine import RunOutcome, RunResult, WorkflowEngine

__all__ = ["WorkflowEngine", "RunOutcome", "RunResult"]
