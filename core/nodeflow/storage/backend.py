"""
Storage backends for run state.

A backend is any object with get_item / set_item / remove_item. Methods may be
sync or async and get_item may return JSON text or an already-decoded dict;
StateStore hides those differences from the engine.
"""

import json
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Key/value contract for persisting run state records."""

    def get_item(self, key: str) -> Any:
        """Return the stored record (JSON text or dict), or None."""
        ...

    def set_item(self, key: str, value: dict[str, Any]) -> Any: ...

    def remove_item(self, key: str) -> Any: ...


class InMemoryStorage:
    """
    Default backend for processes without an external store.

    Records are kept as JSON text so a stored state never aliases the live
    RunState the engine keeps mutating.
    """

    def __init__(self):
        self.storage: dict[str, str] = {}

    async def set_item(self, key: str, value: dict[str, Any]) -> None:
        self.storage[key] = json.dumps(value)

    async def get_item(self, key: str) -> dict[str, Any] | None:
        raw = self.storage.get(key)
        return json.loads(raw) if raw else None

    async def remove_item(self, key: str) -> None:
        self.storage.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self.storage

    def __len__(self) -> int:
        return len(self.storage)


class JSONStorageWrapper:
    """
    Adapts a string-only key/value store to hold structured records.

    The wrapped store needs synchronous get_item/set_item/remove_item working
    on strings (a dict-backed cache, a browser-style localStorage bridge, ...).
    """

    def __init__(self, storage: Any):
        self.storage = storage

    def set_item(self, key: str, value: dict[str, Any]) -> None:
        self.storage.set_item(key, json.dumps(value))

    def get_item(self, key: str) -> dict[str, Any] | None:
        raw = self.storage.get_item(key)
        if raw is None:
            return None
        return json.loads(raw)

    def remove_item(self, key: str) -> None:
        self.storage.remove_item(key)
