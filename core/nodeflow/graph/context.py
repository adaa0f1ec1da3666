"""Per-call context handed to port/route functions and node callbacks."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from nodeflow.schemas.run_state import RunState


@dataclass(frozen=True)
class NodeContext:
    """
    View of the run from one node's point of view.

    The context itself is rebuilt for every call and never mutated. local_vars
    and global_vars are the live dicts of the RunState, so activities can write
    scratch values that survive a pause. tags is a snapshot; use the control
    handle to change them.
    """

    node_id: str | None = None
    data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    local_vars: dict[str, Any] = field(default_factory=dict)
    global_vars: dict[str, Any] = field(default_factory=dict)
    tags: tuple[str, ...] = ()

    @classmethod
    def for_node(
        cls,
        node_id: str,
        run_state: RunState,
        data: Mapping[str, Any] | None = None,
    ) -> "NodeContext":
        return cls(
            node_id=node_id,
            data=MappingProxyType(dict(data or {})),
            local_vars=run_state.ensure_local_vars(node_id),
            global_vars=run_state.global_vars,
            tags=tuple(run_state.tags),
        )

    def get(self, key: str, default: Any = None) -> Any:
        """Shortcut for reading ambient context data."""
        return self.data.get(key, default)
