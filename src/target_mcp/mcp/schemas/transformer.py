"""
Tool listing transformation.

Maps tool definitions onto the wire shape MCP clients receive from
``tools/list``.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from mcp import types
from pydantic import ValidationError

from target_mcp.mcp.schemas.validator import definition_function, member
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)


def _listing_entry(function_def: Any) -> types.Tool | None:
    """Build one listing entry, or None when the definition is incomplete."""
    name = member(function_def, "name")
    parameters = member(function_def, "parameters")
    if parameters is None:
        parameters = {}
    if not isinstance(name, str) or not name or not isinstance(parameters, Mapping):
        return None

    try:
        return types.Tool(
            name=name,
            description=member(function_def, "description"),
            inputSchema=dict(parameters),
        )
    except ValidationError as e:
        logger.debug(f"Dropping tool {name!r} from listing: {e}")
        return None


def to_listing(tools: Iterable[Any]) -> list[types.Tool]:
    """Build the ``tools/list`` payload from discovered tools.

    Entries without a usable ``definition.function`` block (missing, or with
    no string name, or with non-object parameters) are dropped so a
    partially malformed tool never breaks the listing. Input order is kept.

    Args:
        tools: Tool descriptors or raw tool contract objects

    Returns:
        List of MCP Tool definitions
    """
    listing = []
    for tool in tools:
        function_def = definition_function(tool)
        if function_def is None:
            continue
        entry = _listing_entry(function_def)
        if entry is not None:
            listing.append(entry)
    return listing
