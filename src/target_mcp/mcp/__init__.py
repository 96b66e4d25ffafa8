"""
MCP protocol layer: tool discovery, dispatch and the stdio and SSE transports.
"""
