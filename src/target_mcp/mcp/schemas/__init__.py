"""
Tool schema handling.

Validation of declared tool definitions and their transformation into the
MCP ``tools/list`` shape.
"""

from .transformer import to_listing
from .validator import (
    definition_function,
    member,
    validate_parameters_schema,
    validate_tool_definition,
)

__all__ = [
    "definition_function",
    "member",
    "to_listing",
    "validate_parameters_schema",
    "validate_tool_definition",
]
