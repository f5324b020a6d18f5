"""
scriptmcp Host Base - Abstract interface to a script-execution host.

The tool layer treats the host as an opaque capability: it can resolve
commands, describe their parameters and help, convert values to and from
JSON, and execute a command while publishing diagnostic records on the
session's streams. This module defines that interface and the shaped
records it returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from scriptmcp.host.streams import DiagnosticStreams


class ValueKind(str, Enum):
    """Closed set of parameter value kinds a host can declare."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SWITCH = "switch"
    ARRAY = "array"
    OBJECT = "object"
    ANY = "any"


class CommandKind(str, Enum):
    SCRIPT = "script"
    FUNCTION = "function"


@dataclass(frozen=True)
class ParameterInfo:
    """
    A parameter as declared by the command itself.

    ``default`` holds a literal constant found in the declaration, or None
    when the declaration has no default or a computed one.
    """

    name: str
    kind: ValueKind = ValueKind.ANY
    mandatory: bool = False
    default: Any = None
    item_kind: Optional[ValueKind] = None


@dataclass(frozen=True)
class CommandInfo:
    """An invokable unit in the host: a script file or a module function."""

    kind: CommandKind
    name: str
    source: str  # script path or function name, used to invoke it again
    parameters: List[ParameterInfo] = field(default_factory=list)
    parameter_set_count: int = 1


@dataclass
class HelpParameter:
    name: str
    description: Optional[str] = None


@dataclass
class HelpDocument:
    """Structured help for one command."""

    name: str
    description: List[str] = field(default_factory=list)  # paragraphs
    parameters: List[HelpParameter] = field(default_factory=list)
    sections: Dict[str, str] = field(default_factory=dict)


@dataclass
class ModuleInfo:
    name: str
    exported_functions: Dict[str, CommandInfo] = field(default_factory=dict)


class CommandMetadataProvider(ABC):
    """Read-only access to command metadata."""

    @abstractmethod
    def get_help(self, command: CommandInfo) -> Optional[HelpDocument]:
        """Return the structured help for a command, or None if it has none."""
        pass

    def get_parameters(self, command: CommandInfo) -> List[ParameterInfo]:
        return list(command.parameters)

    def get_parameter_set_count(self, command: CommandInfo) -> int:
        return command.parameter_set_count


class HostSession(CommandMetadataProvider):
    """
    A live interpreter context.

    Sessions are not thread-safe. A session is either owned by exactly one
    tool, or shared behind ``scriptmcp.tools.mediator.SharedSession``.
    Implementations must clear their stream buffers after every ``execute``.
    """

    def __init__(self):
        self.streams = DiagnosticStreams()

    @abstractmethod
    def resolve(self, name: str) -> CommandInfo:
        """
        Resolve a script path or function name to a command.

        Raises:
            CommandNotFoundError: If the host has no such command.
        """
        pass

    @abstractmethod
    def import_module(self, name: str) -> ModuleInfo:
        """Load a module into this session and describe its exported functions."""
        pass

    @abstractmethod
    def convert_from_json(self, text: str, depth: int) -> Any:
        """Deserialize JSON text into the host's native value."""
        pass

    @abstractmethod
    def convert_to_json(
        self, value: Any, depth: int, enums_as_names: bool = True, compress: bool = True
    ) -> str:
        """Serialize a native value (or list of values) to JSON text."""
        pass

    @abstractmethod
    def execute(self, command: CommandInfo, arguments: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Run a command and return everything it output."""
        pass

    def close(self) -> None:
        """Release interpreter resources."""
        self.streams.clear()
