"""Helpers for callbacks that may be sync or async."""

import inspect
from typing import Any


async def resolve_maybe_awaitable(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
