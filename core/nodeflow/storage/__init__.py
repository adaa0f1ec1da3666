"""Persistence of run state: backends and the StateStore adapter."""

from nodeflow.storage.backend import InMemoryStorage, JSONStorageWrapper, StorageBackend
from nodeflow.storage.file_storage import FileStorage
from nodeflow.storage.state_store import StateStore

__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "JSONStorageWrapper",
    "FileStorage",
    "StateStore",
]
