"""
nodeflow - Execution runtime for visually authored workflow graphs.

Resolves data dependencies between typed nodes, runs node activities in
traversal order, suspends and resumes runs keyed by an external id, and
guards against cyclic data dependencies.
"""

from nodeflow.errors import (
    GraphStructureError,
    LoopError,
    NodeflowError,
    UnknownNodeError,
    UnknownNodeTypeError,
)
from nodeflow.graph import (
    Connection,
    Continue,
    ControlHandle,
    HandlerRegistry,
    Node,
    NodeContext,
    NodeType,
    PortSpec,
    Suspend,
    load_nodes,
)
from nodeflow.runtime import RunOutcome, RunResult, WorkflowEngine
from nodeflow.schemas import RunState, RunStatus
from nodeflow.storage import FileStorage, InMemoryStorage, JSONStorageWrapper, StateStore

__version__ = "0.4.0"

__all__ = [
    "WorkflowEngine",
    "RunOutcome",
    "RunResult",
    "RunState",
    "RunStatus",
    "Node",
    "NodeType",
    "PortSpec",
    "Connection",
    "NodeContext",
    "Continue",
    "Suspend",
    "ControlHandle",
    "HandlerRegistry",
    "load_nodes",
    "StateStore",
    "InMemoryStorage",
    "JSONStorageWrapper",
    "FileStorage",
    "NodeflowError",
    "GraphStructureError",
    "LoopError",
    "UnknownNodeError",
    "UnknownNodeTypeError",
]
