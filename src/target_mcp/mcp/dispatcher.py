"""
Request dispatch for MCP tool calls.

The dispatcher resolves a tool by name, checks that every required argument
is present, invokes the tool and normalizes the outcome. It never raises for
a failed call: every outcome comes back as a ``DispatchResult``.
"""

import inspect
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mcp import types

from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorKind(Enum):
    """Dispatch failure kinds, valued by their JSON-RPC error code."""

    NOT_FOUND = types.METHOD_NOT_FOUND
    INVALID_PARAMS = types.INVALID_PARAMS
    INTERNAL_ERROR = types.INTERNAL_ERROR

    @property
    def code(self) -> int:
        return self.value


@dataclass(frozen=True)
class DispatchError:
    kind: ErrorKind
    message: str

    def to_error_data(self) -> types.ErrorData:
        """Convert to the JSON-RPC error payload."""
        return types.ErrorData(code=self.kind.code, message=self.message)

    def __str__(self) -> str:
        return f"{self.kind.name}: {self.message}"


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one tool call: serialized text on success, else an error."""

    text: str | None = None
    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> "DispatchResult":
        return cls(text=text)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "DispatchResult":
        return cls(error=DispatchError(kind, message))


def serialize_result(result: Any) -> str:
    """Render a tool result as pretty-printed JSON."""
    return json.dumps(result, indent=2, ensure_ascii=False)


class Dispatcher:
    """Routes tool calls to the tools held by a registry."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> DispatchResult:
        """Call a tool by name.

        Args:
            name: Tool name, matched exactly
            arguments: Call arguments; None is treated as no arguments

        Returns:
            Success with the serialized result, or a NOT_FOUND,
            INVALID_PARAMS or INTERNAL_ERROR failure
        """
        tool = self.registry.get(name)
        if tool is None:
            logger.error(f"Tool not found: {name}")
            return DispatchResult.failure(ErrorKind.NOT_FOUND, f"Unknown tool: {name}")

        arguments = arguments if arguments is not None else {}

        # Presence of the key is enough; None or empty values pass
        for parameter in tool.required:
            if parameter not in arguments:
                logger.warning(f"Tool {name} called without required parameter: {parameter}")
                return DispatchResult.failure(
                    ErrorKind.INVALID_PARAMS, f"Missing required parameter: {parameter}"
                )

        try:
            result = tool.function(arguments)
            if inspect.isawaitable(result):
                result = await result
            text = serialize_result(result)
        except Exception as e:
            logger.error(f"Failed to execute tool {name}: {e}")
            return DispatchResult.failure(ErrorKind.INTERNAL_ERROR, f"API error: {e}")

        logger.debug(f"Tool {name} executed successfully")
        return DispatchResult.success(text)
