"""Tests for HandlerRegistry dispatch and activity result normalization."""

import pytest

from nodeflow.graph.activity import Continue, ControlHandle, Suspend, normalize_result
from nodeflow.graph.handlers import HandlerRegistry, NodeBehavior
from nodeflow.graph.node import NodeType, PortSpec, load_nodes
from nodeflow.runtime.engine import WorkflowEngine
from nodeflow.schemas.run_state import RunState


class AddBehavior:
    def compute_outputs(self, node, inputs, node_type, ctx):
        return {"sum": inputs["a"] + inputs["b"]}

    def execute_activity(self, node, inputs, node_type, ctx, routes, control):
        return None


class PrintBehavior:
    def __init__(self):
        self.printed = []

    def compute_outputs(self, node, inputs, node_type, ctx):
        return {}

    async def execute_activity(self, node, inputs, node_type, ctx, routes, control):
        self.printed.append(inputs["value"])
        return Continue()


NODE_TYPES = {
    "add": NodeType(
        type="add",
        inputs=[PortSpec(name="a", type="number"), PortSpec(name="b", type="number")],
    ),
    "print": NodeType(type="print", inputs=[PortSpec(name="value", type="number")]),
}


def test_behaviors_satisfy_protocol():
    assert isinstance(AddBehavior(), NodeBehavior)
    assert isinstance(PrintBehavior(), NodeBehavior)


@pytest.mark.asyncio
async def test_registry_drives_engine():
    printer = PrintBehavior()
    registry = HandlerRegistry()
    registry.register_control("number", lambda port_type, cfg, ctx: cfg.get("value", 0))
    registry.register_node("add", AddBehavior())
    registry.register_node("print", printer)

    nodes = load_nodes(
        [
            {"id": "sum", "type": "add", "inputData": {"a": {"value": 2}, "b": {"value": 5}}},
            {
                "id": "out",
                "type": "print",
                "root": True,
                "connections": {"inputs": {"value": [{"nodeId": "sum", "portName": "sum"}]}},
            },
        ]
    )

    engine = WorkflowEngine(NODE_TYPES, "run-1", handlers=registry)
    result = await engine.start(nodes)

    assert result.completed
    assert printer.printed == [7]


def test_unregistered_types_fall_back():
    registry = HandlerRegistry()
    nodes = load_nodes([{"id": "n", "type": "mystery"}])
    node_type = NodeType(type="mystery")

    assert registry.resolve_input_controls("color", {}, None) is None
    assert registry.fire_node_function(nodes["n"], {}, node_type, None) == {}
    assert registry.execute_activity(nodes["n"], {}, node_type, None, [], None) is None
    assert not registry.has_node("mystery")


def test_default_control_resolver():
    registry = HandlerRegistry()
    registry.default_control = lambda port_type, cfg, ctx: f"default:{port_type}"
    assert registry.resolve_input_controls("color", {}, None) == "default:color"


class TestNormalizeResult:
    def test_none_continues_on_default_route(self):
        assert normalize_result(None) == Continue("route")
        assert normalize_result(None, default_route="next") == Continue("next")

    def test_mapping_with_route(self):
        assert normalize_result({"route": "no"}) == Continue("no")
        assert normalize_result({"route": ""}) == Continue("route")

    def test_explicit_results_pass_through(self):
        assert normalize_result(Suspend("x")) == Suspend("x")
        assert normalize_result(Continue("yes")) == Continue("yes")

    def test_pause_request_wins(self):
        assert normalize_result({"route": "yes"}, pause_request="x") == Suspend("x")


@pytest.mark.asyncio
async def test_control_handle():
    state = RunState.new("k")
    resumed = []

    async def resume(value):
        resumed.append(value)
        return "resumed"

    control = ControlHandle(state, resume)
    assert not control.pause_called

    control.pause("answer")
    control.add_tag("a")
    assert control.pause_called
    assert control.pause_request == "answer"
    assert control.has_tag("a")
    assert state.tags == ["a"]

    assert await control.resume(5) == "resumed"
    assert resumed == [5]
