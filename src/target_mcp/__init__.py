"""
Target MCP - Adobe Target activity management exposed as MCP tools.

Tool modules are discovered from a directory tree at startup and served over
either stdio or HTTP server-sent events.
"""

__version__ = "0.1.0"
