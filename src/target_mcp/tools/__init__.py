"""
Built-in tool modules, loaded by tool discovery rather than imported.
"""
