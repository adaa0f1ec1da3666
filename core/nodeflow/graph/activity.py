"""
Activity results and the control handle given to activities.

An activity decides how traversal continues after its node runs. It can
either return an explicit result:

    return Continue(route="approved")
    return Suspend(return_variable="answer")

or use the control handle passed to it (control.pause("answer")). Returning a
plain {"route": ...} mapping or None is also accepted and means Continue.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from nodeflow.graph.node import DEFAULT_ROUTE
from nodeflow.schemas.run_state import RunState


@dataclass(frozen=True)
class Continue:
    """Carry on along the named output route."""

    route: str = DEFAULT_ROUTE


@dataclass(frozen=True)
class Suspend:
    """Pause the run; the resumed value is written into this local variable."""

    return_variable: str


ActivityResult = Continue | Suspend


def normalize_result(
    result: Any,
    pause_request: str | None = None,
    default_route: str = DEFAULT_ROUTE,
) -> ActivityResult:
    """
    Convert whatever an activity returned into an ActivityResult.

    A pause requested through the control handle wins over the return value.
    """
    if pause_request is not None:
        return Suspend(return_variable=pause_request)
    if isinstance(result, Continue | Suspend):
        return result
    if isinstance(result, Mapping) and result.get("route"):
        return Continue(route=result["route"])
    return Continue(route=default_route)


class ControlHandle:
    """
    Run control exposed to an activity while it executes.

    pause() only records the request; the executor persists the paused state
    after the activity returns, so an activity that pauses and then keeps
    running asynchronously cannot race the persistence.
    """

    def __init__(
        self,
        run_state: RunState,
        resume: Callable[[Any], Awaitable[Any]],
    ):
        self._run_state = run_state
        self._resume = resume
        self.pause_request: str | None = None

    def pause(self, return_variable: str) -> None:
        self.pause_request = return_variable

    @property
    def pause_called(self) -> bool:
        return self.pause_request is not None

    async def resume(self, return_value: Any) -> Any:
        return await self._resume(return_value)

    def add_tag(self, tag: str) -> None:
        self._run_state.add_tag(tag)

    def remove_tag(self, tag: str) -> None:
        self._run_state.remove_tag(tag)

    def has_tag(self, tag: str) -> bool:
        return self._run_state.has_tag(tag)
