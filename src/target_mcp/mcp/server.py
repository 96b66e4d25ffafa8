"""
MCP server implementation for Target MCP.

This module builds the protocol server that lists the discovered Adobe
Target tools and routes tool calls to them, and runs it over stdio.
"""

import asyncio
import contextlib
import logging
import os
import signal
import uuid

import mcp.server.stdio
from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.shared.exceptions import McpError

from target_mcp.mcp.dispatcher import Dispatcher
from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.utils.config import TargetMCPSettings, get_settings

logger = logging.getLogger(__name__)

# Seconds a cancelled stdio server gets to unwind before the process exits
SHUTDOWN_GRACE_SECONDS = 1.0


def create_mcp_server(registry: ToolRegistry, settings: TargetMCPSettings | None = None) -> Server:
    """Create and configure the MCP server.

    Args:
        registry: Discovered tools to expose
        settings: Optional settings override

    Returns:
        Configured MCP server instance
    """
    settings = settings or get_settings()
    server = Server(settings.server_name, version=settings.server_version)
    dispatcher = Dispatcher(registry)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        """List available MCP tools from the tool registry."""
        corr = str(uuid.uuid4())
        logger.info(f"[corr={corr}] list_tools called")
        tools = registry.get_tool_definitions()
        logger.info(f"[corr={corr}] list_tools returning {len(tools)} tools")
        return tools

    async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
        """Handle tool execution requests.

        Registered as the raw request handler so that argument checking and
        failures stay with the dispatcher and reach the client as JSON-RPC
        errors rather than as error results.
        """
        name = request.params.name
        corr = str(uuid.uuid4())
        logger.info(f"[corr={corr}] call_tool start: name={name}")

        result = await dispatcher.dispatch(name, request.params.arguments)
        if not result.ok:
            logger.error(f"[corr={corr}] call_tool failed: name={name}, {result.error}")
            raise McpError(result.error.to_error_data())

        logger.info(f"[corr={corr}] call_tool success: name={name}")
        return types.ServerResult(
            types.CallToolResult(content=[types.TextContent(type="text", text=result.text)])
        )

    server.request_handlers[types.CallToolRequest] = handle_call_tool

    return server


def initialization_options(server: Server, settings: TargetMCPSettings | None = None) -> InitializationOptions:
    """Initialization options advertising the server identity and tool capability."""
    settings = settings or get_settings()
    return InitializationOptions(
        server_name=settings.server_name,
        server_version=settings.server_version,
        capabilities=server.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={},
        ),
    )


async def _serve_stdio(server: Server, settings: TargetMCPSettings) -> None:
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        logger.info("📡 MCP server stdio streams established")
        await server.run(read_stream, write_stream, initialization_options(server, settings))


async def run_stdio_server(registry: ToolRegistry, settings: TargetMCPSettings | None = None) -> None:
    """Run the MCP server with stdio transport.

    Returns when the client closes stdin. An interrupt signal closes the
    server and exits the process with status 0.

    Args:
        registry: Discovered tools to expose
        settings: Optional settings override
    """
    settings = settings or get_settings()
    server = create_mcp_server(registry, settings)

    logger.info("🌊 Starting MCP server with stdio transport")

    loop = asyncio.get_running_loop()
    shutdown_requested = asyncio.Event()
    with contextlib.suppress(NotImplementedError):
        loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)

    serve_task = asyncio.create_task(_serve_stdio(server, settings))
    shutdown_task = asyncio.create_task(shutdown_requested.wait())

    try:
        done, _ = await asyncio.wait({serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        with contextlib.suppress(NotImplementedError):
            loop.remove_signal_handler(signal.SIGINT)

    if serve_task in done:
        shutdown_task.cancel()
        serve_task.result()
        logger.info("📡 stdio closed by client")
        return

    logger.info("🛑 Shutting down server")
    serve_task.cancel()
    await asyncio.wait({serve_task}, timeout=SHUTDOWN_GRACE_SECONDS)

    # The stdin reader thread blocks until input arrives, so a normal
    # interpreter exit would hang waiting for it
    logging.shutdown()
    os._exit(0)
