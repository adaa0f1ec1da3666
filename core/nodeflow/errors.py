"""
Errors raised by the workflow engine.

Only structural problems and runaway data recursion are raised. Lifecycle
misuse (starting a run twice, resuming a run that is not paused, ...) is
reported through RunResult instead, see nodeflow.runtime.engine.
"""


class NodeflowError(Exception):
    """Base class for all engine errors."""


class GraphStructureError(NodeflowError):
    """The graph cannot be executed as given (e.g. more than one root node)."""


class LoopError(NodeflowError):
    """Recursive data resolution exceeded the loop ceiling."""

    MAX_LOOPS_EXCEEDED = 1

    def __init__(self, message: str, code: int = MAX_LOOPS_EXCEEDED):
        super().__init__(message)
        self.code = code


class UnknownNodeError(NodeflowError, KeyError):
    """A connection or run state references a node id missing from the graph."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Node '{self.node_id}' not found in graph"


class UnknownNodeTypeError(NodeflowError, KeyError):
    """A node's type tag is not present in the node type registry."""

    def __init__(self, node_type: str):
        super().__init__(node_type)
        self.node_type = node_type

    def __str__(self) -> str:
        return f"Node type '{self.node_type}' is not registered"
