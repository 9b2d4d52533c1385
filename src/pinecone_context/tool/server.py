from typing import Any

import mcp.types as types
import structlog
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from pinecone_context.service import ContextService
from pinecone_context.tool.adapters import ContextTool
from pinecone_context.tool.registry import ToolRegistry

_logger = structlog.get_logger()

SERVER_NAME = "pinecone-context"


class ToolCallError(Exception):
    """Raised from a tool handler; the MCP server reports it as ``isError``."""


def build_registry(service: ContextService) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        ContextTool(
            config={
                "top_k": service.config.search.top_k,
                "max_top_k": service.config.search.max_top_k,
            },
            service=service,
        )
    )
    return registry


def build_server(registry: ToolRegistry) -> Server:
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=operation.name,
                description=operation.description,
                inputSchema=operation.input_schema,
            )
            for operation in registry.get_all_operations()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        try:
            result = await registry.execute(name, **(arguments or {}))
        except KeyError:
            raise ToolCallError(f"Unknown tool: {name}") from None

        if not result.success:
            raise ToolCallError(result.content)
        return [types.TextContent(type="text", text=result.content)]

    return server


async def serve(service: ContextService) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    server = build_server(build_registry(service))

    async with stdio_server() as (read_stream, write_stream):
        _logger.info("mcp_server_running", server=SERVER_NAME)
        await server.run(read_stream, write_stream, server.create_initialization_options())
