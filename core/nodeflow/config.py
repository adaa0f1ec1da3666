"""Shared nodeflow configuration.

Reads ~/.nodeflow/configuration.json (or the file named by NODEFLOW_CONFIG)
once per lookup. Every setting can be overridden per process with an
environment variable, and per engine by passing values explicitly.

Example configuration.json:

    {
        "engine": {"max_loops": 5000, "default_route": "route"},
        "storage": {"path": "~/.nodeflow/state"},
        "logging": {"level": "DEBUG", "format": "human"}
    }
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nodeflow.graph.loop_guard import DEFAULT_MAX_LOOPS
from nodeflow.graph.node import DEFAULT_ROUTE

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

DEFAULT_CONFIG_FILE = Path.home() / ".nodeflow" / "configuration.json"
DEFAULT_STORAGE_PATH = Path.home() / ".nodeflow" / "state"


def get_config_path() -> Path:
    return Path(os.environ.get("NODEFLOW_CONFIG", DEFAULT_CONFIG_FILE)).expanduser()


def get_nodeflow_config() -> dict[str, Any]:
    """Load nodeflow configuration; missing or unreadable files yield {}."""
    path = get_config_path()
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8-sig") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}


# ---------------------------------------------------------------------------
# Derived helpers
# ---------------------------------------------------------------------------


def get_max_loops() -> int:
    """Return the loop ceiling: NODEFLOW_MAX_LOOPS, then the config file, then 1000."""
    env = os.environ.get("NODEFLOW_MAX_LOOPS")
    if env:
        try:
            return int(env)
        except ValueError:
            pass
    return int(get_nodeflow_config().get("engine", {}).get("max_loops", DEFAULT_MAX_LOOPS))


def get_default_route() -> str:
    return get_nodeflow_config().get("engine", {}).get("default_route", DEFAULT_ROUTE)


def get_storage_path() -> Path:
    env = os.environ.get("NODEFLOW_STORAGE_PATH")
    if env:
        return Path(env).expanduser()
    configured = get_nodeflow_config().get("storage", {}).get("path")
    return Path(configured).expanduser() if configured else DEFAULT_STORAGE_PATH


def get_log_level() -> str:
    return os.environ.get(
        "LOG_LEVEL", get_nodeflow_config().get("logging", {}).get("level", "INFO")
    )


def get_log_format() -> str:
    return get_nodeflow_config().get("logging", {}).get("format", "auto")


# ---------------------------------------------------------------------------
# EngineConfig
# ---------------------------------------------------------------------------


@dataclass
class EngineConfig:
    """Engine settings loaded from configuration.json and the environment."""

    max_loops: int = field(default_factory=get_max_loops)
    default_route: str = field(default_factory=get_default_route)
    storage_path: Path = field(default_factory=get_storage_path)
    log_level: str = field(default_factory=get_log_level)
    log_format: str = field(default_factory=get_log_format)
