"""
Run State Schema - The persisted, resumable snapshot of one workflow run.

A RunState is owned by exactly one WorkflowEngine per run key. It is created
when a run starts, mutated in place by every traversal step, written to
storage only when the run pauses, and deleted when the run terminates or is
stopped.

Values stored in local_vars / global_vars must be JSON-serializable for a
paused run to survive a round trip through storage.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RunStatus(StrEnum):
    """Status of a run that has a Run State."""

    RUNNING = "running"  # Transient, only while in-process
    PAUSED = "paused"  # Persisted, waiting for resume


class NodeRef(BaseModel):
    """Lightweight reference to a node: its id and type tag."""

    id: str
    type: str

    model_config = ConfigDict(extra="allow")


class RunState(BaseModel):
    """
    State of one in-progress workflow run.

    Serialized with camelCase keys so records written by other runtimes of the
    same flow format can be read back (and vice versa).
    """

    key: str
    state: RunStatus = RunStatus.RUNNING

    # Traversal position
    current_node: NodeRef | None = None
    previous_node: NodeRef | None = None  # Node that routed into current_node

    # Variables
    local_vars: dict[str, dict[str, Any]] = Field(default_factory=dict)  # {node_id: {name: value}}
    global_vars: dict[str, Any] = Field(default_factory=dict)

    # Caller-defined labels, kept in insertion order without duplicates
    tags: list[str] = Field(default_factory=list)

    # Local variable the resumed value is written into (set only while paused)
    return_variable: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    @classmethod
    def new(cls, key: str) -> "RunState":
        """Create a fresh running state for a run key."""
        return cls(key=key, state=RunStatus.RUNNING)

    @property
    def is_paused(self) -> bool:
        return self.state == RunStatus.PAUSED

    def ensure_local_vars(self, node_id: str) -> dict[str, Any]:
        """Return the local variables of a node, creating them on first visit."""
        return self.local_vars.setdefault(node_id, {})

    def reset_local_vars(self, node_id: str) -> None:
        """Discard stale scratch state left behind by a previous visit."""
        if node_id in self.local_vars:
            self.local_vars[node_id] = {}

    # === TAGS ===

    def add_tag(self, tag: str) -> None:
        if tag not in self.tags:
            self.tags.append(tag)

    def remove_tag(self, tag: str) -> None:
        self.tags = [t for t in self.tags if t != tag]

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def to_record(self) -> dict[str, Any]:
        """Serialize for storage."""
        return self.model_dump(mode="json", by_alias=True)
