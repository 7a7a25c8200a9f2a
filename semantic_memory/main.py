"""
Command-line entry point for Semantic Memory.

Runs a single memory tool against the configured Qdrant server and
prints the result, e.g.:

    semantic-memory store "Auth service uses JWT with 1h expiry" --scope s60 --agent main --type decision
    semantic-memory search "how long do auth tokens last" --scope s60
    semantic-memory search-global "n8n key backup"
    semantic-memory update <id> "new text" --collection global
    semantic-memory delete <id>
    semantic-memory check-config

SETUP REQUIRED:
1. Copy .env.example to .env and set QDRANT_URL / QDRANT_API_KEY
2. Optionally copy config.yaml.example to config.yaml
3. The first run downloads the embedding model into the fastembed cache
"""

import argparse
import asyncio
import logging
import sys
from typing import Any

from .config import MEMORY_TYPES, config
from .memory import create_memory_manager
from .tools import ToolRegistry

logger = logging.getLogger("semantic_memory.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="semantic-memory",
        description="Store and search agent memories by meaning.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    store = subparsers.add_parser("store", help="Store a new memory")
    store.add_argument("text")
    store.add_argument("--scope", required=True, help="global or a workspace name")
    store.add_argument("--agent", required=True)
    store.add_argument("--type", required=True, help=" | ".join(MEMORY_TYPES))
    store.add_argument("--tag", dest="tags", action="append", default=[])

    search = subparsers.add_parser("search", help="Search global + workspace memories")
    search.add_argument("query")
    search.add_argument("--scope")
    search.add_argument("--type")
    search.add_argument("--limit", type=int)

    search_global = subparsers.add_parser("search-global", help="Search global memories only")
    search_global.add_argument("query")
    search_global.add_argument("--limit", type=int)

    update = subparsers.add_parser("update", help="Replace the text of a memory")
    update.add_argument("id")
    update.add_argument("text")
    update.add_argument("--collection", choices=["global", "workspace"], default="workspace")

    delete = subparsers.add_parser("delete", help="Delete a memory")
    delete.add_argument("id")
    delete.add_argument("--collection", choices=["global", "workspace"], default="workspace")

    subparsers.add_parser("check-config", help="Validate configuration and exit")

    return parser


def to_tool_call(args: argparse.Namespace) -> tuple[str, dict[str, Any]]:
    """Translate parsed CLI arguments into a tool name and arguments."""
    if args.command == "store":
        return "memory_store", {
            "text": args.text,
            "scope": args.scope,
            "agent": args.agent,
            "type": args.type,
            "tags": args.tags,
        }
    if args.command == "search":
        arguments = {"query": args.query, "scope": args.scope, "type": args.type, "limit": args.limit}
        return "semantic_search", {k: v for k, v in arguments.items() if v is not None}
    if args.command == "search-global":
        arguments = {"query": args.query, "limit": args.limit}
        return "memory_search_global", {k: v for k, v in arguments.items() if v is not None}
    if args.command == "update":
        return "memory_update", {"id": args.id, "text": args.text, "collection": args.collection}
    if args.command == "delete":
        return "memory_delete", {"id": args.id, "collection": args.collection}
    raise ValueError(f"Unknown command: {args.command}")


async def run_command(args: argparse.Namespace) -> bool:
    """
    Execute one CLI command.

    Returns:
        True if the command succeeded
    """
    errors = config.validate()
    if args.command == "check-config":
        for error in errors:
            print(f"- {error}")
        if not errors:
            print("Configuration OK")
        return not errors

    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return False

    tool_name, arguments = to_tool_call(args)
    memory = await create_memory_manager(config)
    try:
        result = await ToolRegistry(memory).execute(tool_name, arguments)
    finally:
        await memory.close()

    print(result.text)
    return not result.is_error


def main(argv: list[str] | None = None):
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    config.setup_logging()

    try:
        success = asyncio.run(run_command(args))
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(130)
    except Exception as e:
        print(f"\nFatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
