"""Tool registry: what the bridge exposes and how calls are routed.

Errors raised by a tool never escape :meth:`ToolRegistry.execute`; they
come back as error results so the transport can report them to the
calling client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from relaycast.core.errors import RelaycastError
from relaycast.tools.base import ToolDefinition, ToolResult

if TYPE_CHECKING:
    from relaycast.tools.base import Tool

logger = logging.getLogger(__name__)


def _missing_required(tool: Tool, arguments: dict[str, Any]) -> list[str]:
    required = tool.parameters_schema.get("required", [])
    return [name for name in required if arguments.get(name) is None]


class ToolRegistry:
    """Registered tools, keyed by name, in registration order."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            msg = f"Tool already registered: {tool.name}"
            raise ValueError(msg)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """Get a tool by name.

        Raises:
            KeyError: If the tool is not found.
        """
        if name not in self._tools:
            msg = f"Tool not found: {name}"
            raise KeyError(msg)
        return self._tools[name]

    def list_definitions(self) -> list[ToolDefinition]:
        """Definitions of all registered tools, for ``tools/list``."""
        return [ToolDefinition.of(t) for t in self._tools.values()]

    def list_names(self) -> list[str]:
        return list(self._tools)

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Run tool *name* with the client's *arguments*.

        Unknown tools, missing required arguments and tool exceptions
        all produce ``is_error=True`` results.
        """
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.failure(f"Unknown tool: {name}")

        missing = _missing_required(tool, arguments)
        if missing:
            return ToolResult.failure(
                f"Missing required arguments: {', '.join(missing)}"
            )

        logger.info("Tool called: %s", name)
        try:
            content = await tool.execute(**arguments)
        except (RelaycastError, ValueError) as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return ToolResult.failure(str(exc))
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", name)
            return ToolResult.failure(f"Tool execution error: {exc}")
        return ToolResult(content)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
