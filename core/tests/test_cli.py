"""Tests for the nodeflow command-line interface."""

import asyncio
import json
from pathlib import Path

import pytest

from nodeflow import cli
from nodeflow.schemas.run_state import NodeRef, RunState, RunStatus
from nodeflow.storage import FileStorage, StateStore


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


def write_graph(tmp_path: Path, nodes: list[dict]) -> Path:
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({n["id"]: n for n in nodes}))
    return path


def persist_state(storage_dir: Path, key: str) -> None:
    state = RunState.new(key)
    state.state = RunStatus.PAUSED
    state.current_node = NodeRef(id="ask", type="ask")
    state.return_variable = "answer"
    asyncio.run(StateStore(FileStorage(storage_dir)).set(key, state))


class TestValidate:
    def test_valid_graph(self, tmp_path, capsys):
        path = write_graph(
            tmp_path,
            [
                {
                    "id": "s",
                    "type": "start",
                    "root": True,
                    "connections": {"outputs": {"route": [{"nodeId": "a"}]}},
                },
                {"id": "a", "type": "step"},
            ],
        )

        assert cli.main(["validate", str(path)]) == 0
        out = capsys.readouterr().out
        assert "2 nodes" in out
        assert "root 's'" in out
        assert "0 warning(s)" in out

    def test_unknown_target_is_a_warning(self, tmp_path, capsys):
        path = write_graph(
            tmp_path,
            [
                {
                    "id": "s",
                    "type": "start",
                    "root": True,
                    "connections": {"outputs": {"route": [{"nodeId": "ghost"}]}},
                }
            ],
        )

        assert cli.main(["validate", str(path)]) == 0
        assert "1 warning(s)" in capsys.readouterr().out

    def test_two_roots(self, tmp_path, capsys):
        path = write_graph(
            tmp_path,
            [
                {"id": "a", "type": "start", "root": True},
                {"id": "b", "type": "start", "root": True},
            ],
        )

        assert cli.main(["validate", str(path)]) == 1
        assert "more than one root" in capsys.readouterr().err

    def test_explicit_root(self, tmp_path):
        path = write_graph(tmp_path, [{"id": "a", "type": "start"}])
        assert cli.main(["validate", str(path)]) == 1
        assert cli.main(["validate", str(path), "--root", "a"]) == 0

    def test_unreadable_graph(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        assert cli.main(["validate", str(path)]) == 1
        assert "Cannot load graph" in capsys.readouterr().err


class TestStateCommands:
    def test_state_prints_record(self, tmp_path, capsys):
        persist_state(tmp_path, "order-1")

        assert cli.main(["state", "order-1", "--storage-dir", str(tmp_path)]) == 0
        record = json.loads(capsys.readouterr().out)
        assert record["state"] == "paused"
        assert record["returnVariable"] == "answer"

    def test_state_missing(self, tmp_path, capsys):
        assert cli.main(["state", "nope", "--storage-dir", str(tmp_path)]) == 1
        assert "No persisted state" in capsys.readouterr().err

    def test_list_and_stop(self, tmp_path, capsys):
        persist_state(tmp_path, "order-1")
        persist_state(tmp_path, "order-2")

        assert cli.main(["list", "--storage-dir", str(tmp_path)]) == 0
        assert capsys.readouterr().out.split() == ["order-1", "order-2"]

        assert cli.main(["stop", "order-1", "--storage-dir", str(tmp_path)]) == 0
        assert FileStorage(tmp_path).list_keys() == ["order-2"]

    def test_default_storage_dir_from_environment(self, tmp_path, capsys):
        # conftest points NODEFLOW_STORAGE_PATH at tmp_path / "state"
        persist_state(tmp_path / "state", "order-9")

        assert cli.main(["list"]) == 0
        assert capsys.readouterr().out.split() == ["order-9"]
