"""
Tool Registry for MCP tools.

The registry is populated once at startup and only read afterwards, so the
many dispatches in flight across sessions can share it without locking.
"""

from collections.abc import Iterable, Iterator
from typing import Any

from mcp import types

from target_mcp.mcp.plugins.base import ToolDescriptor
from target_mcp.mcp.schemas.transformer import to_listing
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Ordered, read-only collection of discovered tools."""

    def __init__(self, tools: Iterable[ToolDescriptor] = ()):
        """Initialize the registry.

        Tools keep the order they are given in. When two tools share a name
        the first one wins and the later one is skipped.

        Args:
            tools: Tool descriptors in discovery order
        """
        accepted: list[ToolDescriptor] = []
        seen: dict[str, ToolDescriptor] = {}

        for tool in tools:
            if tool.name in seen:
                logger.warning(
                    f"Duplicate tool name {tool.name!r} from {tool.source or 'unknown'}, "
                    f"keeping the one from {seen[tool.name].source or 'unknown'}"
                )
                continue
            seen[tool.name] = tool
            accepted.append(tool)

        self._tools: tuple[ToolDescriptor, ...] = tuple(accepted)
        self._by_name: dict[str, ToolDescriptor] = seen

        logger.info(f"Tool registry initialized with {len(self._tools)} tools")

    def get(self, name: str) -> ToolDescriptor | None:
        """Get a tool by exact name, or None if it is not registered."""
        return self._by_name.get(name)

    def list_tools(self) -> list[str]:
        """List tool names in discovery order."""
        return [tool.name for tool in self._tools]

    def get_tool_definitions(self) -> list[types.Tool]:
        """Get MCP tool definitions for all registered tools."""
        return to_listing(self._tools)

    def get_registry_info(self) -> dict[str, Any]:
        """Get summary information about the registry."""
        return {
            "total_tools": len(self._tools),
            "tools": [
                {"name": tool.name, "required": list(tool.required), "source": tool.source}
                for tool in self._tools
            ],
        }

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
