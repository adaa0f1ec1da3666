"""Tests for graph models and helpers."""

import json

import pytest

from nodeflow.errors import GraphStructureError, UnknownNodeError
from nodeflow.graph.context import NodeContext
from nodeflow.graph.node import (
    Connection,
    Node,
    NodeType,
    PortSpec,
    available_routes,
    find_root,
    get_node,
    load_nodes,
    load_nodes_file,
    resolve_ports,
    resolve_routes,
)

EDITOR_EXPORT = {
    "start": {
        "id": "start",
        "type": "start",
        "root": True,
        "inputData": {},
        "connections": {
            "inputs": {},
            "outputs": {"route": [{"nodeId": "greet", "portName": "route"}]},
        },
    },
    "greet": {
        "id": "greet",
        "type": "message",
        "inputData": {"text": {"value": "hello"}},
        "connections": {
            "inputs": {"route": [{"nodeId": "start", "portName": "route"}]},
            "outputs": {},
        },
    },
}


class TestLoading:
    def test_load_camel_case_export(self):
        nodes = load_nodes(EDITOR_EXPORT)

        assert set(nodes) == {"start", "greet"}
        start = nodes["start"]
        assert start.root is True
        route = start.connections.outputs["route"][0]
        assert isinstance(route, Connection)
        assert route.node_id == "greet"
        assert route.port_name == "route"
        assert nodes["greet"].input_data == {"text": {"value": "hello"}}

    def test_load_list_with_snake_case(self):
        nodes = load_nodes(
            [
                {"id": "a", "type": "t", "input_data": {"x": 1}},
                Node(id="b", type="t"),
            ]
        )
        assert nodes["a"].input_data == {"x": 1}
        assert nodes["b"].root is False

    def test_load_nodes_file(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text(json.dumps(EDITOR_EXPORT))

        nodes = load_nodes_file(path)
        assert nodes["greet"].connections.inputs["route"][0].node_id == "start"


class TestFindRoot:
    def test_single_root(self):
        nodes = load_nodes(EDITOR_EXPORT)
        assert find_root(nodes).id == "start"

    def test_multiple_roots_is_structural_error(self):
        nodes = load_nodes(
            [
                {"id": "a", "type": "t", "root": True},
                {"id": "b", "type": "t", "root": True},
            ]
        )
        with pytest.raises(GraphStructureError):
            find_root(nodes)

    def test_no_root(self):
        nodes = load_nodes([{"id": "a", "type": "t"}])
        assert find_root(nodes) is None

    def test_explicit_root_overrides_flags(self):
        nodes = load_nodes(
            [
                {"id": "a", "type": "t", "root": True},
                {"id": "b", "type": "t", "root": True},
            ]
        )
        assert find_root(nodes, "b").id == "b"
        assert find_root(nodes, "missing") is None


class TestDynamicSpecs:
    def test_static_ports(self):
        node_type = NodeType(type="add", inputs=[{"name": "a", "type": "number"}])
        node = Node(id="n", type="add")

        ports = resolve_ports(node_type, node, NodeContext())
        assert ports == [PortSpec(name="a", type="number")]

    def test_computed_ports_receive_configuration(self):
        seen = {}

        def ports(input_data, connections, ctx):
            seen["data"] = input_data
            seen["ctx"] = ctx
            return [{"name": f, "type": "text"} for f in input_data["fields"]]

        node_type = NodeType(type="template", inputs=ports)
        node = Node(id="n", type="template", input_data={"fields": ["first", "last"]})
        ctx = NodeContext(node_id="n")

        result = resolve_ports(node_type, node, ctx)
        assert [p.name for p in result] == ["first", "last"]
        assert seen["data"] == {"fields": ["first", "last"]}
        assert seen["ctx"] is ctx

    def test_computed_routes(self):
        def routes(output_data, connections, ctx):
            return {output_data["choice"]: [{"nodeId": "next"}]}

        node = Node(id="n", type="switch", output_data={"choice": "yes"})
        node.connections.outputs = routes

        resolved = resolve_routes(node, NodeContext())
        assert resolved == {"yes": [Connection(node_id="next", port_name="route")]}
        assert available_routes(node) == []

    def test_available_routes_static(self):
        nodes = load_nodes(EDITOR_EXPORT)
        assert available_routes(nodes["start"]) == ["route"]
        assert available_routes(nodes["greet"]) == []


def test_get_node_unknown():
    with pytest.raises(UnknownNodeError) as exc_info:
        get_node({}, "ghost")
    assert "ghost" in str(exc_info.value)
    assert isinstance(exc_info.value, KeyError)
