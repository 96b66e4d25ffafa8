"""
Upstream service clients for Target MCP.
"""
