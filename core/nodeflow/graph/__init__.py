"""Graph structures, input resolution and traversal."""

from nodeflow.graph.activity import ActivityResult, Continue, ControlHandle, Suspend
from nodeflow.graph.context import NodeContext
from nodeflow.graph.executor import GraphExecutor
from nodeflow.graph.handlers import Callbacks, HandlerRegistry, NodeBehavior
from nodeflow.graph.inputs import InputResolver
from nodeflow.graph.loop_guard import DEFAULT_MAX_LOOPS, LoopGuard
from nodeflow.graph.node import (
    DEFAULT_ROUTE,
    Connection,
    Node,
    NodeConnections,
    NodeType,
    PortSpec,
    find_root,
    load_nodes,
    load_nodes_file,
)

__all__ = [
    # Graph
    "Node",
    "NodeType",
    "NodeConnections",
    "Connection",
    "PortSpec",
    "DEFAULT_ROUTE",
    "find_root",
    "load_nodes",
    "load_nodes_file",
    # Execution
    "NodeContext",
    "InputResolver",
    "GraphExecutor",
    "LoopGuard",
    "DEFAULT_MAX_LOOPS",
    # Activities
    "ActivityResult",
    "Continue",
    "Suspend",
    "ControlHandle",
    # Handlers
    "Callbacks",
    "HandlerRegistry",
    "NodeBehavior",
]
