"""
Workflow Engine - Lifecycle of runs keyed by an external identifier.

The engine owns the persisted RunState of one run key:

    start()  -> fresh run from the root node
    play()   -> start, or continue a paused run, whichever applies
    pause()  -> persist the run as paused (called by the executor when an
                activity suspends)
    resume() -> continue a paused run with the value it was waiting for
    stop()   -> drop the persisted run

A run key is a single-flight slot: while a paused run is persisted under it,
start() refuses to begin another. State is written only when a run pauses and
removed when it terminates, so a step that raises leaves storage as it was.

Lifecycle misuse never raises. Every operation returns a RunResult whose
outcome tells the caller what happened; the condition is also logged.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import Any

from nodeflow.config import EngineConfig
from nodeflow.graph.executor import GraphExecutor
from nodeflow.graph.handlers import Callbacks, HandlerRegistry
from nodeflow.graph.inputs import InputResolver
from nodeflow.graph.node import Node, NodeType, find_root
from nodeflow.observability import set_trace_context
from nodeflow.schemas.run_state import NodeRef, RunState, RunStatus
from nodeflow.storage.backend import StorageBackend
from nodeflow.storage.state_store import StateStore

logger = logging.getLogger(__name__)


class RunOutcome(StrEnum):
    """What a lifecycle operation did."""

    COMPLETED = "completed"  # Traversal terminated, nothing persisted
    PAUSED = "paused"  # Run suspended and persisted
    ALREADY_STARTED = "already_started"  # start() on a key that holds a run
    NOT_STARTED = "not_started"  # pause()/resume() without a run
    NOT_PAUSED = "not_paused"  # resume() on a run that is not paused
    NODE_NOT_FOUND = "node_not_found"  # No root node / current node missing from graph
    STOPPED = "stopped"  # stop() removed the run


@dataclass
class RunResult:
    """Result of a lifecycle operation."""

    outcome: RunOutcome
    state: RunState | None = None  # The paused state when outcome is PAUSED

    @property
    def ok(self) -> bool:
        """True unless the operation was refused."""
        return self.outcome in (RunOutcome.COMPLETED, RunOutcome.PAUSED, RunOutcome.STOPPED)

    @property
    def paused(self) -> bool:
        return self.outcome == RunOutcome.PAUSED

    @property
    def completed(self) -> bool:
        return self.outcome == RunOutcome.COMPLETED


class WorkflowEngine:
    """
    Runs workflow graphs for one run key.

    Example:
        engine = WorkflowEngine(
            node_types={"ask": NodeType(type="ask"), ...},
            key="order-1234",
            resolve_input_controls=resolve_controls,
            fire_node_function=compute_outputs,
            execute_activity=run_activity,
        )

        result = await engine.start(nodes, context={"user": "alice"})
        if result.paused:
            ...
            result = await engine.resume("yes", nodes)
    """

    def __init__(
        self,
        node_types: Mapping[str, NodeType],
        key: str,
        resolve_input_controls: Callable | None = None,
        fire_node_function: Callable | None = None,
        execute_activity: Callable | None = None,
        handlers: HandlerRegistry | Callbacks | None = None,
        storage: StorageBackend | StateStore | None = None,
        config: EngineConfig | None = None,
        max_loops: int | None = None,
    ):
        """
        Initialize the engine.

        Args:
            node_types: Node type registry (type tag -> NodeType)
            key: Run key; also the storage record key
            resolve_input_controls: Resolves values of unwired input ports
            fire_node_function: Computes a node's outputs for data pulls
            execute_activity: Runs a node's activity and picks its route
            handlers: Registry or Callbacks used instead of the three callables
            storage: Storage backend or StateStore (in-memory if None)
            config: Engine configuration (loaded from disk/env if None)
            max_loops: Loop ceiling; overrides config.max_loops
        """
        self.key = key
        self.node_types = node_types
        self.config = config or EngineConfig()
        self.callbacks = self._build_callbacks(
            handlers, resolve_input_controls, fire_node_function, execute_activity
        )
        self.storage = storage if isinstance(storage, StateStore) else StateStore(storage)

        self.resolver = InputResolver(
            node_types,
            self.callbacks,
            max_loops=self.config.max_loops if max_loops is None else max_loops,
            route_port=self.config.default_route,
        )
        self.executor = GraphExecutor(
            self.resolver, self.callbacks, default_route=self.config.default_route
        )

    @staticmethod
    def _build_callbacks(
        handlers: HandlerRegistry | Callbacks | None,
        resolve_input_controls: Callable | None,
        fire_node_function: Callable | None,
        execute_activity: Callable | None,
    ) -> Callbacks:
        if isinstance(handlers, HandlerRegistry):
            return handlers.callbacks()
        if isinstance(handlers, Callbacks):
            return handlers

        missing = [
            name
            for name, fn in (
                ("resolve_input_controls", resolve_input_controls),
                ("fire_node_function", fire_node_function),
                ("execute_activity", execute_activity),
            )
            if fn is None
        ]
        if missing:
            raise ValueError(f"Missing engine callbacks: {', '.join(missing)}")
        return Callbacks(
            resolve_input_controls=resolve_input_controls,
            fire_node_function=fire_node_function,
            execute_activity=execute_activity,
        )

    def reset_loops(self, max_loops: int | None = None) -> None:
        """Set the loop ceiling (1000 if None, negative to disable)."""
        self.resolver.reset_loops(max_loops)

    # === LIFECYCLE ===

    async def start(
        self,
        nodes: Mapping[str, Node],
        root_node_id: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> RunResult:
        """
        Start a new run at the root node.

        Raises:
            GraphStructureError: If more than one node is flagged as root
        """
        set_trace_context(run_key=self.key)
        if await self.storage.exists(self.key):
            logger.warning(f"Run '{self.key}' already started")
            return RunResult(RunOutcome.ALREADY_STARTED)

        root = find_root(nodes, root_node_id)
        if root is None:
            logger.warning(
                "A root node was not found. The workflow engine requires that "
                "exactly one node be marked as the root node."
            )
            return RunResult(RunOutcome.NODE_NOT_FOUND)

        state = RunState.new(self.key)
        state.current_node = NodeRef(id=root.id, type=root.type)
        logger.info(f"Starting run '{self.key}' at root node '{root.id}'")
        return await self._run(state, root, nodes, context)

    async def play(
        self,
        nodes: Mapping[str, Node],
        root_node_id: str | None = None,
        context: Mapping[str, Any] | None = None,
        return_value: Any = None,
    ) -> RunResult:
        """
        Start a new run, or continue the persisted one.

        A paused run gets return_value written into the variable it is
        waiting for; a fresh run starts at the root node.
        """
        set_trace_context(run_key=self.key)
        stored = await self.storage.get(self.key)
        new_run = stored is None

        if new_run:
            state = RunState.new(self.key)
            current = find_root(nodes, root_node_id)
        else:
            state = stored
            current = nodes.get(state.current_node.id) if state.current_node else None

        if current is None:
            logger.warning(
                "The current node was not found. If you are starting a new flow, make "
                "sure exactly one node is marked as the root node."
            )
            return RunResult(RunOutcome.NODE_NOT_FOUND)

        local_vars = state.ensure_local_vars(current.id)
        if state.is_paused:
            state.state = RunStatus.RUNNING
            if state.return_variable is not None:
                local_vars[state.return_variable] = return_value
        elif state.return_variable is not None:
            local_vars[state.return_variable] = None
        state.return_variable = None

        state.current_node = NodeRef(id=current.id, type=current.type)
        logger.info(f"Playing run '{self.key}' from node '{current.id}' (new={new_run})")
        return await self._run(state, current, nodes, context)

    async def pause(self, run_state: RunState | None, return_variable: str) -> RunResult:
        """Mark a run paused, waiting for return_variable, and persist it."""
        if run_state is None:
            logger.warning(f"Cannot pause run '{self.key}': not started")
            return RunResult(RunOutcome.NOT_STARTED)

        run_state.state = RunStatus.PAUSED
        run_state.return_variable = return_variable
        await self.storage.set(self.key, run_state)
        return RunResult(RunOutcome.PAUSED, run_state)

    async def resume(
        self,
        return_value: Any,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None = None,
    ) -> RunResult:
        """Continue a paused run, handing return_value to the node it paused at."""
        set_trace_context(run_key=self.key)
        state = await self.storage.get(self.key)
        if state is None:
            logger.warning(f"No state to resume for run '{self.key}'")
            return RunResult(RunOutcome.NOT_STARTED)

        if not state.is_paused:
            logger.warning(f"Cannot resume run '{self.key}': not paused (state={state.state})")
            return RunResult(RunOutcome.NOT_PAUSED)

        node = nodes.get(state.current_node.id) if state.current_node else None
        if node is None:
            logger.warning(f"Cannot resume run '{self.key}': current node not in graph")
            return RunResult(RunOutcome.NODE_NOT_FOUND)

        state.state = RunStatus.RUNNING
        if state.return_variable is not None:
            state.ensure_local_vars(node.id)[state.return_variable] = return_value
        state.return_variable = None

        logger.info(f"Resuming run '{self.key}' at node '{node.id}'")
        return await self._run(state, node, nodes, context)

    async def stop(self) -> RunResult:
        """Remove the persisted run, whatever state it is in."""
        await self.storage.remove(self.key)
        logger.info(f"Stopped run '{self.key}'")
        return RunResult(RunOutcome.STOPPED)

    async def get_state(self) -> RunState | None:
        """Return the persisted state of this run key, if any."""
        return await self.storage.get(self.key)

    # === INTERNALS ===

    async def _run(
        self,
        state: RunState,
        node: Node,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
    ) -> RunResult:
        paused = await self.executor.iterate_nodes(
            state,
            node,
            nodes,
            context,
            pause=self.pause,
            resume=partial(self.resume, nodes=nodes, context=context),
        )
        if paused is None:
            await self.storage.remove(self.key)
            return RunResult(RunOutcome.COMPLETED)
        return RunResult(RunOutcome.PAUSED, paused)
