"""
Node Protocol - Nodes, ports and connections of a workflow graph.

A graph is a flat mapping of node id to Node. Nodes are wired together by
Connections stored on the node itself:

- connections.inputs:  input port name -> upstream (node_id, port_name) pairs
- connections.outputs: route name -> downstream nodes to continue with

Both a NodeType's input ports and a Node's output routes may be computed at
runtime from the node's configuration. Such specs are plain callables and are
resolved once per visit with resolve_ports() / resolve_routes().

Models accept the camelCase keys produced by the flow editor's JSON export
(inputData, nodeId, portName, ...) as well as snake_case names.
"""

import json
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nodeflow.errors import GraphStructureError, UnknownNodeError

DEFAULT_ROUTE = "route"

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="allow",
)


class Connection(BaseModel):
    """One end of an edge: a node and the named port on it."""

    node_id: str
    port_name: str = DEFAULT_ROUTE

    model_config = _MODEL_CONFIG


ConnectionMap = dict[str, list[Connection]]

# (output_data, connections, context) -> {route_name: [Connection, ...]}
RouteFunction = Callable[..., Mapping[str, Any]]

# (input_data, connections, context) -> [PortSpec, ...]
PortFunction = Callable[..., Iterable[Any]]


class NodeConnections(BaseModel):
    """Input wiring and output routes of a node."""

    inputs: ConnectionMap = Field(default_factory=dict)
    outputs: ConnectionMap | RouteFunction = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")


class Node(BaseModel):
    """
    A node placed in a workflow graph.

    input_data / output_data are opaque to the engine; they are handed to the
    embedding application's callbacks and to dynamic port/route functions.
    """

    id: str
    type: str
    root: bool = False
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: dict[str, Any] = Field(default_factory=dict)
    connections: NodeConnections = Field(default_factory=NodeConnections)

    model_config = _MODEL_CONFIG


class PortSpec(BaseModel):
    """A declared input port: its name and the control type resolving it."""

    name: str
    type: str = ""

    model_config = ConfigDict(extra="allow")


class NodeType(BaseModel):
    """
    Descriptor shared by every node with the same type tag.

    Examples:
        # Static ports
        NodeType(type="add", inputs=[PortSpec(name="a", type="number"),
                                     PortSpec(name="b", type="number")])

        # Ports computed from node configuration
        NodeType(type="template", inputs=lambda data, conns, ctx: [
            PortSpec(name=n, type="text") for n in data.get("fields", {})
        ])
    """

    type: str
    label: str = ""
    inputs: list[PortSpec] | PortFunction = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="allow")


def _as_port(port: Any) -> PortSpec:
    if isinstance(port, PortSpec):
        return port
    return PortSpec.model_validate(port)


def _as_connections(connections: Iterable[Any] | None) -> list[Connection]:
    return [
        c if isinstance(c, Connection) else Connection.model_validate(c)
        for c in (connections or [])
    ]


def resolve_ports(node_type: NodeType, node: Node, context: Any) -> list[PortSpec]:
    """Return the input ports of a node, calling a dynamic port spec if needed."""
    inputs = node_type.inputs
    if callable(inputs):
        inputs = inputs(node.input_data, node.connections, context)
    return [_as_port(p) for p in inputs or []]


def resolve_routes(node: Node, context: Any) -> ConnectionMap:
    """Return the output routes of a node, calling a dynamic route spec if needed."""
    outputs = node.connections.outputs
    if callable(outputs):
        outputs = outputs(node.output_data, node.connections, context)
    return {route: _as_connections(conns) for route, conns in (outputs or {}).items()}


def available_routes(node: Node) -> list[str]:
    """Route names known without evaluating a dynamic route spec."""
    outputs = node.connections.outputs
    if callable(outputs):
        return []
    return list(outputs.keys())


# === GRAPH HELPERS ===


def load_nodes(data: Mapping[str, Any] | Iterable[Any]) -> dict[str, Node]:
    """
    Validate raw node dicts into a node-id -> Node mapping.

    Accepts either a mapping keyed by node id (the editor's export format) or
    a plain list of nodes.
    """
    items = data.values() if isinstance(data, Mapping) else data
    nodes: dict[str, Node] = {}
    for raw in items:
        node = raw if isinstance(raw, Node) else Node.model_validate(raw)
        nodes[node.id] = node
    return nodes


def load_nodes_file(path: str | Path) -> dict[str, Node]:
    """Load a graph exported as JSON."""
    with open(path, encoding="utf-8") as f:
        return load_nodes(json.load(f))


def find_root(nodes: Mapping[str, Node], root_node_id: str | None = None) -> Node | None:
    """
    Locate the entry node of a graph.

    Args:
        nodes: Graph to search
        root_node_id: Explicit root override; bypasses the root flag

    Returns:
        The root node, or None if the graph has no root

    Raises:
        GraphStructureError: If more than one node is flagged as root
    """
    if root_node_id is not None:
        return nodes.get(root_node_id)

    roots = [n for n in nodes.values() if n.root]
    if len(roots) > 1:
        raise GraphStructureError(
            "The root engine must not be called with more than one root node "
            f"(found: {', '.join(n.id for n in roots)})"
        )
    return roots[0] if roots else None


def get_node(nodes: Mapping[str, Node], node_id: str) -> Node:
    try:
        return nodes[node_id]
    except KeyError:
        raise UnknownNodeError(node_id) from None
