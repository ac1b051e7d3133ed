"""MCP server exposing the relaycast tools over stdio."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

if TYPE_CHECKING:
    from relaycast.config.schema import RelaycastConfig
    from relaycast.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

server = Server("relaycast")

_registry: ToolRegistry | None = None


def configure(registry: ToolRegistry) -> None:
    """Install the registry that backs ``tools/list`` and ``tools/call``."""
    global _registry
    _registry = registry


def _get_registry() -> ToolRegistry:
    if _registry is None:
        msg = "MCP server has no tool registry; call configure() first"
        raise RuntimeError(msg)
    return _registry


def _get_tools() -> list[Tool]:
    """MCP tool definitions for every registered tool."""
    return [
        Tool(
            name=d.name,
            description=d.description,
            inputSchema=d.parameters_schema,
        )
        for d in _get_registry().list_definitions()
    ]


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return _get_tools()


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    """Route a tool call through the registry."""
    result = await _get_registry().execute(name, dict(arguments or {}))
    return [TextContent(type="text", text=result.render())]


async def run_server(config: RelaycastConfig) -> None:
    """Build the tool registry from *config* and serve on stdio."""
    from relaycast.cli.app import (
        _setup_dispatcher,
        _setup_publisher,
        _setup_signer,
        _setup_tools,
    )

    signer = _setup_signer(config, ephemeral_ok=True)
    dispatcher = _setup_dispatcher(config)
    publisher = _setup_publisher(config, signer, dispatcher)
    configure(_setup_tools(config, publisher))

    logger.info(
        "MCP server ready: issuer %s, %d relays, tools: %s, PoW %s",
        signer.public_identity,
        len(dispatcher.endpoints),
        ", ".join(_get_registry().list_names()) or "none",
        f"{config.pow.difficulty} bits" if config.pow.difficulty else "disabled",
    )

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
