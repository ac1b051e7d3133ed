"""What a relaycast tool is, plus the argument checks tools share.

A tool is one operation the MCP bridge exposes: publish a note,
summarise a day, tell a joke. It receives the client's JSON arguments
as keyword arguments and returns the text sent back. Bad arguments are
``ValueError``; the registry turns those, and any ``RelaycastError``,
into error results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Tool(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema object; its ``required`` list is enforced by the registry."""
        ...

    async def execute(self, **kwargs: Any) -> str: ...


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """What ``tools/list`` advertises for one tool."""

    name: str
    description: str
    parameters_schema: dict[str, Any]

    @classmethod
    def of(cls, tool: Tool) -> ToolDefinition:
        return cls(tool.name, tool.description, tool.parameters_schema)


@dataclass(frozen=True, slots=True)
class ToolResult:
    content: str
    is_error: bool = False

    @classmethod
    def failure(cls, content: str) -> ToolResult:
        return cls(content, is_error=True)

    def render(self) -> str:
        """Text for the client; failures carry an ``Error:`` prefix."""
        return f"Error: {self.content}" if self.is_error else self.content


def require_text(kwargs: dict[str, Any], key: str) -> str:
    """Return a required, non-empty string argument.

    Raises:
        ValueError: If the argument is missing, empty, or not a string.
    """
    value = kwargs.get(key, "")
    if not value or not isinstance(value, str) or not value.strip():
        msg = f"Parameter '{key}' is required and must be a non-empty string."
        raise ValueError(msg)
    return value


def bounded_int(
    kwargs: dict[str, Any],
    key: str,
    *,
    maximum: int | None = None,
) -> int | None:
    """Return an optional integer argument in ``0..maximum``.

    JSON booleans are not accepted as integers.

    Raises:
        ValueError: Present but not an integer, or out of range.
    """
    value = kwargs.get(key)
    if value is None:
        return None
    is_int = isinstance(value, int) and not isinstance(value, bool)
    if not is_int or value < 0 or (maximum is not None and value > maximum):
        bounds = f"in 0..{maximum}" if maximum is not None else ">= 0"
        msg = f"Parameter '{key}' must be an integer {bounds}."
        raise ValueError(msg)
    return value
