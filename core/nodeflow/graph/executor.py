"""
Graph Executor - Steps through a workflow graph node by node.

The executor:
1. Resolves the inputs of the current node
2. Runs the node's activity
3. Suspends if the activity asked to pause
4. Otherwise follows the chosen output route to the next node
5. Stops when the route has no single successor

Routes mapped to more than one connection terminate traversal: there is no
fan-out. An application that needs branching picks the edge itself in its
activity.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from nodeflow.graph.activity import ControlHandle, Suspend, normalize_result
from nodeflow.graph.context import NodeContext
from nodeflow.graph.handlers import Callbacks
from nodeflow.graph.inputs import InputResolver
from nodeflow.graph.node import (
    DEFAULT_ROUTE,
    Node,
    available_routes,
    get_node,
    resolve_routes,
)
from nodeflow.observability import set_trace_context
from nodeflow.schemas.run_state import NodeRef, RunState
from nodeflow.utils.aio import resolve_maybe_awaitable

logger = logging.getLogger(__name__)

PauseFn = Callable[[RunState, str], Awaitable[Any]]
ResumeFn = Callable[[Any], Awaitable[Any]]


class GraphExecutor:
    """
    Drives the traversal loop of one run.

    Example:
        executor = GraphExecutor(resolver, callbacks)
        paused_state = await executor.iterate_nodes(
            state, root, nodes, context={}, pause=engine.pause, resume=resume_fn
        )
    """

    def __init__(
        self,
        resolver: InputResolver,
        callbacks: Callbacks,
        default_route: str = DEFAULT_ROUTE,
    ):
        self.resolver = resolver
        self.callbacks = callbacks
        self.default_route = default_route

    async def iterate_nodes(
        self,
        run_state: RunState,
        node: Node,
        nodes: Mapping[str, Node],
        context: Mapping[str, Any] | None,
        pause: PauseFn,
        resume: ResumeFn,
    ) -> RunState | None:
        """
        Run the graph starting at node.

        Args:
            run_state: State of the run, mutated in place
            node: Node to start (or resume) at
            nodes: The whole graph
            context: Ambient data threaded into every callback
            pause: Persists the run when an activity suspends it
            resume: Re-enters the controller's resume operation

        Returns:
            The paused RunState if an activity suspended the run,
            None if traversal terminated
        """
        current: Node | None = node
        steps = 0
        while current is not None:
            set_trace_context(node_id=current.id)
            node_type = self.resolver.get_node_type(current)

            input_values = await self.resolver.resolve_input_values(
                current, node_type, nodes, context, run_state
            )

            ctx = NodeContext.for_node(current.id, run_state, context)
            control = ControlHandle(run_state, resume)
            raw = await resolve_maybe_awaitable(
                self.callbacks.execute_activity(
                    current,
                    input_values,
                    node_type,
                    ctx,
                    available_routes(current),
                    control,
                )
            )
            steps += 1
            result = normalize_result(raw, control.pause_request, self.default_route)

            if isinstance(result, Suspend):
                await pause(run_state, result.return_variable)
                logger.info(
                    f"Run paused at node '{current.id}' after {steps} step(s), "
                    f"waiting for '{result.return_variable}'"
                )
                return run_state

            # Routes may depend on what the activity just wrote, so resolve them now
            ctx = NodeContext.for_node(current.id, run_state, context)
            connections = resolve_routes(current, ctx).get(result.route) or []

            if len(connections) != 1:
                if len(connections) > 1:
                    logger.warning(
                        f"Route '{result.route}' of node '{current.id}' has "
                        f"{len(connections)} connections; fan-out is not supported, stopping"
                    )
                logger.info(f"Run terminated at node '{current.id}' after {steps} step(s)")
                return None

            target = get_node(nodes, connections[0].node_id)
            logger.debug(f"Route '{result.route}': '{current.id}' -> '{target.id}'")
            run_state.previous_node = run_state.current_node
            run_state.current_node = NodeRef(id=target.id, type=target.type)
            run_state.reset_local_vars(target.id)
            current = target

        return None
