"""
Tool definitions for agents using semantic memory.

This module maps the memory tools (store, search, update, delete) onto
the MemoryManager and renders their results as Markdown for the caller.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from .config import MEMORY_TYPES, request_context
from .errors import SemanticMemoryError, ValidationError
from .memory import MemoryManager, SearchResult

logger = logging.getLogger("semantic_memory.tools")

_TYPES_HINT = " | ".join(MEMORY_TYPES)


@dataclass
class ToolResult:
    """Text returned to the calling agent."""
    text: str
    is_error: bool = False


def _string_arg(arguments: dict[str, Any], name: str, required: bool = True) -> str | None:
    value = arguments.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"Missing required argument: {name}", field=name)
        return None
    return str(value)


def _limit_arg(arguments: dict[str, Any]) -> int | None:
    value = arguments.get("limit")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"limit must be a number, got {value!r}", field="limit")


def _tags_arg(arguments: dict[str, Any]) -> list[str]:
    value = arguments.get("tags")
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value]
    raise ValidationError("tags must be a list of strings", field="tags")


def _collection_arg(arguments: dict[str, Any]) -> str:
    return "global" if arguments.get("collection") == "global" else "workspace"


class ToolRegistry:
    """
    Registry of memory tools available to agents.
    """

    def __init__(self, memory: MemoryManager):
        self.memory = memory

    def get_definitions(self) -> list[dict[str, Any]]:
        """
        Get the JSON schema definitions for all available tools.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": "memory_store",
                    "description": (
                        "Store text in semantic memory. scope='global' is shared across all agents; "
                        "any other scope (s60, bw, fess, ...) is per-workspace. "
                        "Use it for decisions, context and anything worth remembering."
                    ),
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "text": {"type": "string", "description": "Text to store"},
                            "scope": {
                                "type": "string",
                                "description": "global | <workspace name>",
                            },
                            "agent": {
                                "type": "string",
                                "description": "Identifier of the storing agent (main, venom, ...)",
                            },
                            "type": {"type": "string", "description": f"Memory type: {_TYPES_HINT}"},
                            "tags": {
                                "type": "array",
                                "items": {"type": "string"},
                                "description": "Optional tags",
                            },
                        },
                        "required": ["text", "scope", "agent", "type"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "semantic_search",
                    "description": (
                        "Search memory by meaning rather than exact wording. "
                        "Always searches global memory, plus the given workspace scope."
                    ),
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "query": {"type": "string", "description": "Natural language query"},
                            "scope": {"type": "string", "description": "Workspace scope (optional)"},
                            "type": {
                                "type": "string",
                                "description": f"Type filter (optional): {_TYPES_HINT}",
                            },
                            "limit": {"type": "number", "description": "Max results (default: 10)"},
                        },
                        "required": ["query"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "memory_search_global",
                    "description": (
                        "Search only global memory: cross-project knowledge shared by all agents. "
                        "Use it for general conventions or architecture."
                    ),
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "query": {"type": "string", "description": "Natural language query"},
                            "limit": {"type": "number", "description": "Max results (default: 10)"},
                        },
                        "required": ["query"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "memory_update",
                    "description": "Replace the text of an existing memory (the vector is recomputed).",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": "Memory id returned by memory_store"},
                            "text": {"type": "string", "description": "New text"},
                            "collection": {
                                "type": "string",
                                "description": "global | workspace (default: workspace)",
                            },
                        },
                        "required": ["id", "text"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": "memory_delete",
                    "description": "Delete a memory permanently.",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "id": {"type": "string", "description": "Memory id"},
                            "collection": {
                                "type": "string",
                                "description": "global | workspace (default: workspace)",
                            },
                        },
                        "required": ["id"],
                    },
                },
            },
        ]

    async def execute(self, tool_name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Execute a tool by name with arguments.
        """
        arguments = arguments or {}
        token = request_context.set(f"{tool_name}:{uuid.uuid4().hex[:8]}")
        logger.info(f"Executing tool: {tool_name} with args: {sorted(arguments)}")

        try:
            if tool_name == "memory_store":
                return await self._store(arguments)
            elif tool_name == "semantic_search":
                return await self._search(arguments)
            elif tool_name == "memory_search_global":
                return await self._search_global(arguments)
            elif tool_name == "memory_update":
                return await self._update(arguments)
            elif tool_name == "memory_delete":
                return await self._delete(arguments)
            else:
                return ToolResult(f"Unknown tool: {tool_name}", is_error=True)

        except SemanticMemoryError as e:
            logger.error(f"Error executing tool {tool_name}: {e}")
            return ToolResult(f"Error: {e}", is_error=True)
        except Exception as e:
            logger.exception(f"Unexpected error executing tool {tool_name}: {e}")
            return ToolResult(f"Error executing tool: {e}", is_error=True)
        finally:
            request_context.reset(token)

    async def _store(self, arguments: dict[str, Any]) -> ToolResult:
        scope = _string_arg(arguments, "scope")
        memory_type = _string_arg(arguments, "type")
        memory_id = await self.memory.store(
            text=_string_arg(arguments, "text"),
            scope=scope,
            agent=_string_arg(arguments, "agent"),
            type=memory_type,
            tags=_tags_arg(arguments),
        )
        return ToolResult(f"Stored in semantic memory\nID: {memory_id}\nScope: {scope}, Type: {memory_type}")

    async def _search(self, arguments: dict[str, Any]) -> ToolResult:
        query = _string_arg(arguments, "query")
        results = await self.memory.semantic_search(
            query=query,
            scope=_string_arg(arguments, "scope", required=False),
            type=_string_arg(arguments, "type", required=False),
            limit=_limit_arg(arguments),
        )
        if not results:
            return ToolResult(f'No results for: "{query}"')
        return ToolResult(format_results(f'Semantic search: "{query}"', results, show_scope=True))

    async def _search_global(self, arguments: dict[str, Any]) -> ToolResult:
        query = _string_arg(arguments, "query")
        results = await self.memory.semantic_search_global(
            query=query,
            limit=_limit_arg(arguments),
        )
        if not results:
            return ToolResult(f'No global memories for: "{query}"')
        return ToolResult(format_results(f'Global memory: "{query}"', results, show_scope=False))

    async def _update(self, arguments: dict[str, Any]) -> ToolResult:
        memory_id = _string_arg(arguments, "id")
        await self.memory.update(
            id=memory_id,
            text=_string_arg(arguments, "text"),
            collection=_collection_arg(arguments),
        )
        return ToolResult(f"Memory {memory_id} updated")

    async def _delete(self, arguments: dict[str, Any]) -> ToolResult:
        memory_id = _string_arg(arguments, "id")
        await self.memory.delete(id=memory_id, collection=_collection_arg(arguments))
        return ToolResult(f"Memory {memory_id} deleted")


def format_results(title: str, results: list[SearchResult], show_scope: bool = True) -> str:
    """Render search hits as Markdown."""
    lines = [f"### {title}", f"{len(results)} results:", ""]

    for result in results:
        record = result.record
        header = f"**[{result.score * 100:.0f}%]**"
        if show_scope:
            header += f" scope:{record.scope}"
        header += f" type:{record.type} agent:{record.agent}"
        lines.append(header)
        lines.append(f"> {record.text}")
        if show_scope and record.tags:
            lines.append(f"_tags: {', '.join(record.tags)}_")
        lines.append(f"id: `{result.id}` | {record.created_at}")
        lines.append("")

    return "\n".join(lines)
