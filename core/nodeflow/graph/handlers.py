"""
Handler Registry - Dispatches node behavior by type tag.

The engine calls three callbacks supplied by the embedding application:

    resolve_input_controls(port_type, control_config, context)
    fire_node_function(node, input_values, node_type, context)
    execute_activity(node, input_values, node_type, context, routes, control)

Any of them may be sync or async. Instead of writing those three functions
with a branch per node type, an application can register one NodeBehavior
per type tag and one control resolver per port type:

    registry = HandlerRegistry()
    registry.register_control("number", lambda port_type, cfg, ctx: cfg.get("value", 0))
    registry.register_node("add", AddBehavior())

    engine = WorkflowEngine(node_types, handlers=registry, key="run-1")
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from nodeflow.graph.activity import ControlHandle
from nodeflow.graph.context import NodeContext
from nodeflow.graph.node import Node, NodeType

logger = logging.getLogger(__name__)

ControlResolver = Callable[[str, dict[str, Any], NodeContext], Any]
NodeFunction = Callable[[Node, dict[str, Any], NodeType, NodeContext], Any]
ActivityExecutor = Callable[
    [Node, dict[str, Any], NodeType, NodeContext, list[str], ControlHandle], Any
]


@runtime_checkable
class NodeBehavior(Protocol):
    """Behavior of one node type. Methods may be sync or async."""

    def compute_outputs(
        self, node: Node, inputs: dict[str, Any], node_type: NodeType, ctx: NodeContext
    ) -> Any:
        """Return {output_port_name: value} for data pulled from this node."""
        ...

    def execute_activity(
        self,
        node: Node,
        inputs: dict[str, Any],
        node_type: NodeType,
        ctx: NodeContext,
        routes: list[str],
        control: ControlHandle,
    ) -> Any:
        """Run the node's side effect and choose the route to continue on."""
        ...


@dataclass
class Callbacks:
    """The three callbacks the engine invokes."""

    resolve_input_controls: ControlResolver
    fire_node_function: NodeFunction
    execute_activity: ActivityExecutor


class HandlerRegistry:
    """Type-tag -> implementation registry producing engine Callbacks."""

    def __init__(self):
        self._controls: dict[str, ControlResolver] = {}
        self._nodes: dict[str, NodeBehavior] = {}
        self.default_control: ControlResolver | None = None

    def register_control(self, port_type: str, resolver: ControlResolver) -> None:
        self._controls[port_type] = resolver

    def register_node(self, node_type: str, behavior: NodeBehavior) -> None:
        self._nodes[node_type] = behavior

    def has_node(self, node_type: str) -> bool:
        return node_type in self._nodes

    def resolve_input_controls(
        self, port_type: str, control_config: dict[str, Any], ctx: NodeContext
    ) -> Any:
        resolver = self._controls.get(port_type, self.default_control)
        if resolver is None:
            logger.debug(f"No control resolver for port type '{port_type}', using None")
            return None
        return resolver(port_type, control_config, ctx)

    def fire_node_function(
        self, node: Node, inputs: dict[str, Any], node_type: NodeType, ctx: NodeContext
    ) -> Any:
        behavior = self._nodes.get(node.type)
        if behavior is None:
            logger.debug(f"No behavior for node type '{node.type}', node outputs nothing")
            return {}
        return behavior.compute_outputs(node, inputs, node_type, ctx)

    def execute_activity(
        self,
        node: Node,
        inputs: dict[str, Any],
        node_type: NodeType,
        ctx: NodeContext,
        routes: list[str],
        control: ControlHandle,
    ) -> Any:
        behavior = self._nodes.get(node.type)
        if behavior is None:
            return None
        return behavior.execute_activity(node, inputs, node_type, ctx, routes, control)

    def callbacks(self) -> Callbacks:
        return Callbacks(
            resolve_input_controls=self.resolve_input_controls,
            fire_node_function=self.fire_node_function,
            execute_activity=self.execute_activity,
        )
