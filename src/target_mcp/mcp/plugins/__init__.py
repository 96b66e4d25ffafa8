"""
MCP Tool Plugin Architecture.

Discovery, validation and registration of tool modules.
"""

from .base import ApiTool, ToolDescriptor, ToolPlugin
from .discovery import PluginDiscovery, build_registry, discover_tools
from .registry import ToolRegistry

__all__ = [
    "ApiTool",
    "PluginDiscovery",
    "ToolDescriptor",
    "ToolPlugin",
    "ToolRegistry",
    "build_registry",
    "discover_tools",
]
