"""
Schema Validation for MCP tool definitions.

Tool modules declare their parameters as JSON Schema. Definitions are checked
once, at discovery time, so a malformed module is rejected before it can
reach the registry. Call arguments are deliberately not validated against the
schema here: the dispatcher only checks that required keys are present.
"""

from collections.abc import Mapping
from typing import Any

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)

DEFINITION_FIELDS = ("name", "description", "parameters")


def member(obj: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an attribute of an object, else None."""
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def definition_function(tool: Any) -> Any:
    """Return ``tool.definition.function`` or None when the shape is missing."""
    definition = member(tool, "definition")
    if definition is None:
        return None
    return member(definition, "function")


def validate_parameters_schema(parameters: Any) -> list[str]:
    """Validate a tool's parameter schema.

    Args:
        parameters: The declared ``parameters`` object

    Returns:
        List of error messages, empty when the schema is acceptable
    """
    if not isinstance(parameters, Mapping):
        return ["parameters must be an object"]

    errors = []
    if parameters.get("type", "object") != "object":
        errors.append(f"parameters.type must be 'object', got {parameters.get('type')!r}")

    properties = parameters.get("properties", {})
    if not isinstance(properties, Mapping):
        errors.append("parameters.properties must be an object")

    required = parameters.get("required", [])
    if not isinstance(required, (list, tuple)) or not all(isinstance(r, str) for r in required):
        errors.append("parameters.required must be a list of strings")

    try:
        Draft7Validator.check_schema(dict(parameters))
    except SchemaError as e:
        errors.append(f"parameters is not a valid JSON schema: {e.message}")

    return errors


def validate_tool_definition(function_def: Any) -> list[str]:
    """Validate the ``definition.function`` block of a tool.

    Args:
        function_def: The ``definition.function`` object of a candidate tool

    Returns:
        List of error messages, empty when the definition is acceptable
    """
    if function_def is None:
        return ["missing definition.function"]

    errors = []
    for field in DEFINITION_FIELDS:
        if member(function_def, field) is None:
            errors.append(f"missing definition.function.{field}")

    if errors:
        return errors

    name = member(function_def, "name")
    if not isinstance(name, str) or not name:
        errors.append("definition.function.name must be a non-empty string")

    if not isinstance(member(function_def, "description"), str):
        errors.append("definition.function.description must be a string")

    errors.extend(validate_parameters_schema(member(function_def, "parameters")))

    if errors:
        logger.debug(f"Tool definition {name!r} rejected: {errors}")
    return errors
