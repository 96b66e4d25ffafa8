"""
Main entry point for the Target MCP server CLI.

Runs the MCP server over stdio by default, or over HTTP server-sent events
with ``--sse``. stdout belongs to the protocol in stdio mode, so all user
facing messages go to stderr.
"""

import asyncio
import sys
import traceback

import click

from target_mcp.mcp.plugins.discovery import PluginDiscovery
from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.mcp.server import run_stdio_server
from target_mcp.mcp.sse import run_sse_server
from target_mcp.utils.config import TargetMCPSettings, get_settings
from target_mcp.utils.errors import ConfigurationError, DiscoveryError
from target_mcp.utils.logging import configure_root_logging, get_logger

logger = get_logger(__name__)


async def _run(sse: bool, settings: TargetMCPSettings) -> None:
    discovery = PluginDiscovery(settings.get_tools_directory())
    registry = ToolRegistry(discovery.discover())

    info = discovery.get_discovery_info()
    logger.info(f"📁 Tool directory: {info['root']} ({len(info['loaded_modules'])} modules loaded)")
    for source, reason in info["rejected_modules"].items():
        logger.warning(f"⚠️ Skipped tool module {source}: {reason}")
    logger.info(f"🧰 Loaded {len(registry)} tools: {', '.join(registry.list_tools()) or 'none'}")

    if sse:
        await run_sse_server(registry, settings)
    else:
        await run_stdio_server(registry, settings)


@click.command()
@click.option("--sse", is_flag=True, help="Serve over HTTP server-sent events instead of stdio")
def main(sse: bool) -> None:
    """Start the Adobe Target MCP server."""
    settings = get_settings()

    try:
        validation = settings.require_valid()
    except ConfigurationError as e:
        configure_root_logging(level="INFO")
        click.echo("Error: Invalid configuration:", err=True)
        for error in e.context["errors"]:
            logger.error(f"❌ Settings error: {error}")
            click.echo(f"  - {error}", err=True)
        for suggestion in e.suggestions:
            logger.error(f"💡 {suggestion}")
        sys.exit(1)

    configure_root_logging(
        level=settings.log_level,
        structured=settings.log_structured,
        log_file=settings.get_log_file_path(),
    )

    for warning in validation.warnings:
        logger.warning(f"Settings warning: {warning}")

    logger.info(f"🚀 Starting {settings.server_name} v{settings.server_version} ({'sse' if sse else 'stdio'})")

    try:
        asyncio.run(_run(sse, settings))
    except KeyboardInterrupt:
        logger.info("⌨️ MCP server stopped by user")
    except DiscoveryError as e:
        logger.error(f"💥 Tool discovery failed: {e}")
        for suggestion in e.suggestions:
            logger.error(f"💡 {suggestion}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"💥 MCP server error: {e}")
        logger.error(f"🔍 Exception type: {type(e).__name__}")
        logger.error(f"🔍 Full traceback:\n{traceback.format_exc()}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
