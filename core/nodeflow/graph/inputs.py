"""
Input Resolver - Produces the concrete input values of a node.

For every declared input port of a node the resolver either:
1. Pulls the value across the port's first input connection, resolving the
   upstream node's own inputs and computing its outputs, or
2. Asks the embedding application to resolve the control value the user
   entered for the port (when the port is not wired).

Ports are resolved one after another in declaration order, never
concurrently, so two runs over the same graph call the application's
callbacks in the same order.

Upstream pulls are driven from an explicit stack of frames rather than
Python recursion, so a data chain can be as deep as the loop ceiling allows
(or unbounded when the ceiling is disabled).
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from nodeflow.errors import UnknownNodeTypeError
from nodeflow.graph.context import NodeContext
from nodeflow.graph.handlers import Callbacks
from nodeflow.graph.loop_guard import LoopGuard
from nodeflow.graph.node import (
    DEFAULT_ROUTE,
    Connection,
    Node,
    NodeType,
    PortSpec,
    get_node,
    resolve_ports,
)
from nodeflow.schemas.run_state import RunState
from nodeflow.utils.aio import resolve_maybe_awaitable

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """One node whose inputs are being resolved."""

    node: Node
    node_type: NodeType
    ports: list[PortSpec]
    guard: LoopGuard
    connection: Connection | None = None  # Set when the frame feeds an upstream pull
    values: dict[str, Any] = field(default_factory=dict)
    index: int = 0


class InputResolver:
    """
    Resolves node inputs and the values flowing across input connections.

    Example:
        resolver = InputResolver(node_types, callbacks)
        values = await resolver.resolve_input_values(
            node, node_types[node.type], nodes, context={}, run_state=state
        )
    """

    def __init__(
        self,
        node_types: Mapping[str, NodeType],
        callbacks: Callbacks,
        max_loops: int | None = None,
        route_port: str = DEFAULT_ROUTE,
    ):
        self.node_types = node_types
        self.callbacks = callbacks
        self.route_port = route_port
        self.guard = LoopGuard().reset_loops(max_loops)

    def reset_loops(self, max_loops: int | None = None) -> None:
        """Set the ceiling used for every new chain of data pulls."""
        self.guard = self.guard.reset_loops(max_loops)

    def get_node_type(self, node: Node) -> NodeType:
        try:
            return self.node_types[node.type]
        except KeyError:
            raise UnknownNodeTypeError(node.type) from None

    async def resolve_input_values(
        self,
        node: Node,
        node_type: NodeType,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
        run_state: RunState,
        guard: LoopGuard | None = None,
    ) -> dict[str, Any]:
        """
        Resolve one value per declared input port of node.

        Args:
            node: Node whose inputs are needed
            node_type: Descriptor of node.type
            nodes: The whole graph
            context: Ambient data from the caller
            run_state: Run the node belongs to
            guard: Recursion budget of the current pull chain (fresh if None)

        Returns:
            {port_name: value}
        """
        frame = self._frame(node, node_type, guard or self.guard, context, run_state)
        return await self._drain([frame], nodes, context, run_state)

    async def get_value_of_connection(
        self,
        connection: Connection,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
        run_state: RunState,
        guard: LoopGuard | None = None,
    ) -> Any:
        """
        Compute the value an upstream output port feeds into a connection.

        Raises:
            LoopError: If the chain of nested pulls exceeds the loop ceiling
        """
        frame = self._pull(connection, guard or self.guard, nodes, context, run_state)
        return await self._drain([frame], nodes, context, run_state)

    def _frame(
        self,
        node: Node,
        node_type: NodeType,
        guard: LoopGuard,
        context: Mapping[str, Any] | None,
        run_state: RunState,
        connection: Connection | None = None,
    ) -> _Frame:
        ctx = NodeContext.for_node(node.id, run_state, context)
        ports = resolve_ports(node_type, node, ctx)
        return _Frame(node, node_type, ports, guard, connection)

    def _pull(
        self,
        connection: Connection,
        guard: LoopGuard,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
        run_state: RunState,
    ) -> _Frame:
        nested = guard.check_loops()
        upstream = get_node(nodes, connection.node_id)
        upstream_type = self.get_node_type(upstream)
        return self._frame(upstream, upstream_type, nested, context, run_state, connection)

    async def _drain(
        self,
        stack: list[_Frame],
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
        run_state: RunState,
    ) -> Any:
        """
        Resolve frames until the stack is empty.

        Returns the input values of the bottom frame, or the value it feeds
        across its connection when it is an upstream pull.
        """
        while True:
            frame = stack[-1]
            if frame.index < len(frame.ports):
                port = frame.ports[frame.index]
                connections = self._data_connections(frame.node, port.name, run_state)
                if connections:
                    # Only single-source inputs are supported
                    stack.append(
                        self._pull(connections[0], frame.guard, nodes, context, run_state)
                    )
                    continue
                ctx = NodeContext.for_node(frame.node.id, run_state, context)
                control = frame.node.input_data.get(port.name) or {}
                frame.values[port.name] = await resolve_maybe_awaitable(
                    self.callbacks.resolve_input_controls(port.type, control, ctx)
                )
                frame.index += 1
                continue

            stack.pop()
            result = frame.values
            if frame.connection is not None:
                result = await self._fire(frame, context, run_state)
            if not stack:
                return result

            parent = stack[-1]
            parent.values[parent.ports[parent.index].name] = result
            parent.index += 1

    async def _fire(
        self,
        frame: _Frame,
        context: Mapping[str, Any] | None,
        run_state: RunState,
    ) -> Any:
        ctx = NodeContext.for_node(frame.node.id, run_state, context)
        outputs = await resolve_maybe_awaitable(
            self.callbacks.fire_node_function(frame.node, frame.values, frame.node_type, ctx)
        )
        port_name = frame.connection.port_name
        logger.debug(f"Pulled '{port_name}' from node '{frame.node.id}'")
        return (outputs or {}).get(port_name)

    def _data_connections(
        self, node: Node, port_name: str, run_state: RunState
    ) -> list[Connection]:
        """Connections feeding port_name, minus the control-flow edge we arrived by."""
        connections = node.connections.inputs.get(port_name) or []
        previous = run_state.previous_node
        if previous is None:
            return list(connections)

        route_sources = {c.node_id for c in node.connections.inputs.get(self.route_port) or []}
        if previous.id not in route_sources:
            return list(connections)
        return [c for c in connections if c.node_id != previous.id]
