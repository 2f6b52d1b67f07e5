"""
MCP server exposing the call tools over the Model Context Protocol

Every tool registered with the dispatcher is published with its argument
schema; calls are validated and executed by the dispatcher, so MCP clients
see the same results and error messages as the HTTP and JSON-RPC routes.

Usage:
    python -m app.mcp_server

Client config:
    {
        "mcpServers": {
            "calls": {
                "command": "python",
                "args": ["-m", "app.mcp_server"],
                "cwd": "/path/to/call-mcp-server"
            }
        }
    }
"""

import asyncio
import json
import sys
from typing import Any, Dict

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError as MCPToolError
from fastmcp.tools.tool import Tool, ToolResult
from pydantic import PrivateAttr
import structlog

from app.config import Settings, settings
from app.context import ServiceContext, build_context
from app.errors import ToolError
from app.main import configure_logging
from app.tools.dispatcher import ToolDispatcher

logger = structlog.get_logger()


class DispatchedTool(Tool):
    """MCP tool whose calls are routed through the dispatcher"""

    _dispatcher: ToolDispatcher = PrivateAttr()

    @classmethod
    def from_dispatcher(cls, dispatcher: ToolDispatcher, name: str, description: str, schema: Dict[str, Any]):
        tool = cls(name=name, description=description, parameters=schema)
        tool._dispatcher = dispatcher
        return tool

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        try:
            result = await self._dispatcher.invoke(self.name, arguments)
        except ToolError as e:
            raise MCPToolError(e.message) from e
        return ToolResult(content=json.dumps(result), structured_content=result)


def create_mcp_server(context: ServiceContext) -> FastMCP:
    mcp = FastMCP(name=context.settings.service_name)
    for tool in context.dispatcher.list_tools():
        mcp.add_tool(
            DispatchedTool.from_dispatcher(
                context.dispatcher,
                tool["name"],
                tool["description"],
                tool["inputSchema"],
            )
        )
    logger.info("MCP server ready", tools=context.dispatcher.names)
    return mcp


async def serve(settings: Settings) -> None:
    """Serve MCP over stdio until the client disconnects"""
    for warning in settings.validate_startup():
        logger.warning("Configuration warning", warning=warning)

    context = build_context(settings)
    try:
        await create_mcp_server(context).run_async()
    finally:
        await context.close()


if __name__ == "__main__":
    # stdout carries the protocol
    configure_logging(settings, stream=sys.stderr)
    asyncio.run(serve(settings))
