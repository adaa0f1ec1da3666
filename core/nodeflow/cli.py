"""
Command-line interface for nodeflow.

Usage:
    nodeflow validate flows/approval.json
    nodeflow state order-1234 [--storage-dir DIR]
    nodeflow list [--storage-dir DIR]
    nodeflow stop order-1234 [--storage-dir DIR]

Run state commands operate on FileStorage; the directory defaults to the
configured storage path (~/.nodeflow/state).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from nodeflow.config import EngineConfig
from nodeflow.errors import GraphStructureError
from nodeflow.graph.node import find_root, load_nodes_file, resolve_routes
from nodeflow.observability import configure_logging
from nodeflow.storage import FileStorage, StateStore

logger = logging.getLogger(__name__)


def _store(args: argparse.Namespace) -> tuple[FileStorage, StateStore]:
    backend = FileStorage(args.storage_dir or EngineConfig().storage_path)
    return backend, StateStore(backend)


def cmd_validate(args: argparse.Namespace) -> int:
    """Check root cardinality and report connections to unknown nodes."""
    try:
        nodes = load_nodes_file(args.graph)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Cannot load graph: {e}", file=sys.stderr)
        return 1

    try:
        root = find_root(nodes, args.root)
    except GraphStructureError as e:
        print(f"Invalid graph: {e}", file=sys.stderr)
        return 1
    if root is None:
        print("Invalid graph: no root node", file=sys.stderr)
        return 1

    warnings = 0
    for node in nodes.values():
        wired = [c for conns in node.connections.inputs.values() for c in conns]
        if not callable(node.connections.outputs):
            wired += [c for conns in resolve_routes(node, None).values() for c in conns]
        for connection in wired:
            if connection.node_id not in nodes:
                logger.warning(f"Node '{node.id}' is wired to unknown node '{connection.node_id}'")
                warnings += 1

    print(f"OK: {len(nodes)} nodes, root '{root.id}', {warnings} warning(s)")
    return 0


def cmd_state(args: argparse.Namespace) -> int:
    _, store = _store(args)
    state = asyncio.run(store.get(args.key))
    if state is None:
        print(f"No persisted state for '{args.key}'", file=sys.stderr)
        return 1
    print(state.model_dump_json(by_alias=True, indent=2))
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    backend, _ = _store(args)
    for key in backend.list_keys():
        print(key)
    return 0


def cmd_stop(args: argparse.Namespace) -> int:
    _, store = _store(args)
    asyncio.run(store.remove(args.key))
    print(f"Removed state for '{args.key}'")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodeflow",
        description="nodeflow - inspect workflow graphs and persisted runs",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: configured)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a graph JSON export")
    validate.add_argument("graph", type=Path)
    validate.add_argument("--root", default=None, help="Explicit root node id")
    validate.set_defaults(func=cmd_validate)

    for name, func, help_text in (
        ("state", cmd_state, "Print the persisted state of a run"),
        ("stop", cmd_stop, "Remove the persisted state of a run"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("key")
        sub.add_argument("--storage-dir", type=Path, default=None)
        sub.set_defaults(func=func)

    list_parser = subparsers.add_parser("list", help="List runs with persisted state")
    list_parser.add_argument("--storage-dir", type=Path, default=None)
    list_parser.set_defaults(func=cmd_list)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = EngineConfig()
    configure_logging(level=args.log_level or config.log_level, format=config.log_format)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
