"""Shared fixtures for nodeflow tests."""

import pytest

from nodeflow.config import EngineConfig
from nodeflow.observability import clear_trace_context


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from ~/.nodeflow and leaked trace context."""
    monkeypatch.setenv("NODEFLOW_CONFIG", str(tmp_path / "no-config.json"))
    monkeypatch.delenv("NODEFLOW_MAX_LOOPS", raising=False)
    monkeypatch.setenv("NODEFLOW_STORAGE_PATH", str(tmp_path / "state"))
    clear_trace_context()
    yield
    clear_trace_context()


@pytest.fixture
def engine_config(tmp_path) -> EngineConfig:
    return EngineConfig(max_loops=1000, storage_path=tmp_path / "state")
