"""
File Storage - One JSON file per run key.

Layout:
    {base_path}/
        runs/
            {run_key}.json

Writes are atomic (temp file + rename) and all file I/O runs in a worker
thread so the event loop is never blocked.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from nodeflow.utils.io import atomic_write

logger = logging.getLogger(__name__)

_DANGEROUS_CHARS = {"<", ">", "|", "&", "$", "`", "'", '"'}


class FileStorage:
    """File-backed storage backend for run state records."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self.runs_dir = self.base_path / "runs"

    def _validate_key(self, key: str) -> None:
        """
        Validate key to prevent path traversal.

        Raises:
            ValueError: If key is empty or could escape runs_dir
        """
        if not key or key.strip() == "":
            raise ValueError("Key cannot be empty")

        if "/" in key or "\\" in key:
            raise ValueError(f"Invalid key format: path separators not allowed in '{key}'")

        if ".." in key or key.startswith("."):
            raise ValueError(f"Invalid key format: path traversal detected in '{key}'")

        if "\x00" in key:
            raise ValueError("Invalid key format: null bytes not allowed")

        if any(char in key for char in _DANGEROUS_CHARS):
            raise ValueError(f"Invalid key format: contains dangerous characters in '{key}'")

    def get_path(self, key: str) -> Path:
        self._validate_key(key)
        return self.runs_dir / f"{key}.json"

    async def set_item(self, key: str, value: dict[str, Any]) -> None:
        path = self.get_path(key)

        def _write():
            with atomic_write(path) as f:
                json.dump(value, f, indent=2)

        await asyncio.to_thread(_write)
        logger.debug(f"Wrote run state {path}")

    async def get_item(self, key: str) -> str | None:
        path = self.get_path(key)

        def _read() -> str | None:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

        return await asyncio.to_thread(_read)

    async def remove_item(self, key: str) -> None:
        path = self.get_path(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    def list_keys(self) -> list[str]:
        """Run keys that currently have a persisted state."""
        if not self.runs_dir.is_dir():
            return []
        return sorted(p.stem for p in self.runs_dir.glob("*.json"))
