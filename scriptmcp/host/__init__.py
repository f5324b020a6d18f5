"""
scriptmcp host module.

The script-execution host behind the tools: the abstract session interface,
the in-process Python host, and the diagnostic ``write_*`` functions that
scripts call to report progress and problems.
"""

from scriptmcp.host.base import (
    CommandInfo,
    CommandKind,
    CommandMetadataProvider,
    HelpDocument,
    HelpParameter,
    HostSession,
    ModuleInfo,
    ParameterInfo,
    ValueKind,
)
from scriptmcp.host.python_host import PythonSession, Switch
from scriptmcp.host.streams import (
    write_debug,
    write_error,
    write_information,
    write_progress,
    write_verbose,
    write_warning,
)

__all__ = [
    "CommandInfo",
    "CommandKind",
    "CommandMetadataProvider",
    "HelpDocument",
    "HelpParameter",
    "HostSession",
    "ModuleInfo",
    "ParameterInfo",
    "PythonSession",
    "Switch",
    "ValueKind",
    "write_debug",
    "write_error",
    "write_information",
    "write_progress",
    "write_verbose",
    "write_warning",
]
