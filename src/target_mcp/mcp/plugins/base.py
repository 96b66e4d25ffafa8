"""
Base classes for MCP tool plugins.

A tool is anything exposing a callable ``function`` and a ``definition`` of
the form ``{"type": "function", "function": {name, description, parameters}}``.
Two authoring styles produce that shape:

    # declarative module
    api_tool = ApiTool(function=execute, definition={...})

    # explicit plugin class
    class MyTool(ToolPlugin):
        name = "my_tool"
        ...

Both are normalized into an immutable ``ToolDescriptor`` before they enter
the registry.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from target_mcp.mcp.schemas.validator import definition_function, member, validate_tool_definition
from target_mcp.utils.errors import ToolContractError
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)

ToolFunction = Callable[[dict[str, Any]], Any | Awaitable[Any]]


def build_definition(name: str, description: str, parameters: Mapping[str, Any]) -> dict[str, Any]:
    """Build the wire-level ``definition`` block for a tool."""
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": dict(parameters),
        },
    }


@dataclass(frozen=True)
class ApiTool:
    """Declarative tool contract exported by a tool module as ``api_tool``."""

    function: ToolFunction
    definition: dict[str, Any]


class ToolPlugin(ABC):
    """Abstract base class for class-style tool plugins.

    Subclasses describe the tool and implement ``invoke``. The ``definition``
    and ``function`` members are derived, so a plugin instance satisfies the
    same contract as a declarative ``api_tool``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the unique name of this tool."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get a human-readable description of this tool."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """Get the JSON schema describing accepted arguments."""
        pass

    @abstractmethod
    async def invoke(self, arguments: dict[str, Any]) -> Any:
        """Execute the tool with the given arguments.

        Args:
            arguments: Dictionary of arguments passed to the tool

        Returns:
            A JSON-serializable result
        """
        pass

    @property
    def definition(self) -> dict[str, Any]:
        """Get the tool definition in contract form."""
        return build_definition(self.name, self.description, self.parameters)

    @property
    def function(self) -> ToolFunction:
        """The callable the dispatcher invokes."""
        return self.invoke

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


@dataclass(frozen=True)
class ToolDescriptor:
    """One invocable tool, as held by the registry."""

    name: str
    description: str
    parameters: dict[str, Any]
    function: ToolFunction = field(repr=False, compare=False)
    source: str = ""

    @property
    def required(self) -> tuple[str, ...]:
        """Names of the arguments a call must supply."""
        return tuple(self.parameters.get("required") or ())

    @property
    def definition(self) -> dict[str, Any]:
        """Get the tool definition in contract form."""
        return build_definition(self.name, self.description, self.parameters)

    @classmethod
    def from_contract(cls, tool: Any, source: str = "") -> "ToolDescriptor":
        """Normalize a tool contract object into a descriptor.

        Args:
            tool: A ``ToolPlugin``, an ``ApiTool``, a mapping or any object
                exposing ``function`` and ``definition``
            source: Where the tool came from, for logging

        Returns:
            Validated tool descriptor

        Raises:
            ToolContractError: If the object does not satisfy the contract
        """
        function = member(tool, "function")
        if function is None:
            raise ToolContractError(f"Tool from {source or tool!r} has no function")
        if not callable(function):
            raise ToolContractError(f"Tool from {source or tool!r} has a non-callable function")

        function_def = definition_function(tool)
        errors = validate_tool_definition(function_def)
        if errors:
            raise ToolContractError(
                f"Tool from {source or tool!r} has an invalid definition: {'; '.join(errors)}",
                context={"errors": errors, "source": source},
            )

        return cls(
            name=member(function_def, "name"),
            description=member(function_def, "description"),
            parameters=dict(member(function_def, "parameters")),
            function=function,
            source=source,
        )
