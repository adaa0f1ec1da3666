"""
State Store - Uniform async access to persisted run state.

Wraps any StorageBackend so the engine can always:

    state = await store.get(key)       # RunState | None
    await store.set(key, state)
    await store.remove(key)

regardless of whether the backend is sync or async, or whether it hands back
JSON text or decoded dicts.
"""

import logging
from typing import Any

from nodeflow.schemas.run_state import RunState
from nodeflow.storage.backend import InMemoryStorage, StorageBackend
from nodeflow.utils.aio import resolve_maybe_awaitable

logger = logging.getLogger(__name__)


class StateStore:
    """Async get/set/remove of RunState records over a pluggable backend."""

    def __init__(self, backend: StorageBackend | None = None):
        self.backend = backend if backend is not None else InMemoryStorage()

    async def get(self, key: str) -> RunState | None:
        record = await resolve_maybe_awaitable(self.backend.get_item(key))
        return self._decode(record)

    async def set(self, key: str, state: RunState) -> None:
        await resolve_maybe_awaitable(self.backend.set_item(key, state.to_record()))
        logger.debug(f"Persisted run state '{key}' ({state.state})")

    async def remove(self, key: str) -> None:
        await resolve_maybe_awaitable(self.backend.remove_item(key))

    async def exists(self, key: str) -> bool:
        return (await self.get(key)) is not None

    @staticmethod
    def _decode(record: Any) -> RunState | None:
        if record is None or record == "":
            return None
        if isinstance(record, RunState):
            return record.model_copy(deep=True)
        if isinstance(record, str | bytes):
            return RunState.model_validate_json(record)
        return RunState.model_validate(record)
