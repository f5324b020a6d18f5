"""
Schema synthesis - turns command metadata and help into a ToolDescriptor.

Synthesis is a pure projection of what the host reports about a command.
Anything that would leave a tool without a usable description or schema is
a DocumentationError; there is no partial result.
"""

from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Optional

from scriptmcp.errors import DocumentationError
from scriptmcp.host.base import CommandInfo, CommandMetadataProvider, ParameterInfo, ValueKind
from scriptmcp.tools.schema import JSON_SCHEMA_DRAFT, ToolDescriptor

_JSON_TYPES = {
    ValueKind.STRING: "string",
    ValueKind.INTEGER: "integer",
    ValueKind.NUMBER: "number",
    ValueKind.BOOLEAN: "boolean",
    ValueKind.SWITCH: "boolean",
    ValueKind.ARRAY: "array",
    ValueKind.OBJECT: "object",
}

# Zero values for optional parameters without a literal default. Kinds not
# listed here get no default at all.
_ZERO_VALUES = {
    ValueKind.STRING: "",
    ValueKind.INTEGER: 0,
    ValueKind.NUMBER: 0.0,
    ValueKind.BOOLEAN: False,
    ValueKind.SWITCH: False,
}

_INVALID_NAME_CHARS = re.compile(r"[^0-9A-Za-z_]")


def tool_name_for(command: CommandInfo) -> str:
    """``Get-Weather.py`` -> ``Get_Weather``."""
    base, _ = os.path.splitext(command.name)
    return _INVALID_NAME_CHARS.sub("_", base)


def resolve_default(param: ParameterInfo) -> Optional[Any]:
    """Default for an optional parameter, or None when it gets no default."""
    if param.mandatory:
        return None
    if isinstance(param.default, (str, int, float, bool)):
        return param.default
    return _ZERO_VALUES.get(param.kind)


def parameter_schema(param: ParameterInfo, description: str) -> Dict[str, Any]:
    schema: Dict[str, Any] = {}
    json_type = _JSON_TYPES.get(param.kind)
    if json_type:
        schema["type"] = json_type
    if param.kind is ValueKind.ARRAY and param.item_kind in _JSON_TYPES:
        schema["items"] = {"type": _JSON_TYPES[param.item_kind]}
    schema["description"] = description

    default = resolve_default(param)
    if default is not None:
        schema["default"] = default
    return schema


def synthesize_tool(provider: CommandMetadataProvider, command: CommandInfo) -> ToolDescriptor:
    """
    Build the ToolDescriptor for one command.

    Raises:
        DocumentationError: If the command has several parameter sets, no help,
            no description, or a parameter without a description.
    """
    kind = command.kind.value
    name = command.name

    if provider.get_parameter_set_count(command) > 1:
        raise DocumentationError(f"The {kind} '{name}' cannot have more than 1 parameter set.")

    help_doc = provider.get_help(command)
    if help_doc is None:
        raise DocumentationError(f"The {kind} '{name}' has no help defined.")
    if not help_doc.description:
        raise DocumentationError(f"No description found for the {kind} '{name}'.")

    declared = provider.get_parameters(command)
    declared_names = {param.name for param in declared}
    documented = {entry.name: entry for entry in help_doc.parameters}

    for entry_name in documented:
        if entry_name not in declared_names:
            raise DocumentationError(
                f"The help of the {kind} '{name}' documents an unknown parameter '{entry_name}'."
            )

    properties: Dict[str, Any] = {}
    required: List[str] = []
    for param in declared:
        entry = documented.get(param.name)
        if entry is None or not entry.description:
            raise DocumentationError(f"No description found for the parameter '{param.name}'.")

        properties[param.name] = parameter_schema(param, entry.description)
        if param.mandatory:
            required.append(param.name)

    schema: Dict[str, Any] = {
        "type": "object",
        "additionalProperties": False,
        "$schema": JSON_SCHEMA_DRAFT,
        "properties": properties,
    }
    if required:
        schema["required"] = required

    return ToolDescriptor(
        name=tool_name_for(command),
        description=help_doc.description[0],
        input_schema=schema,
    )
