"""
scriptmcp - Expose Python scripts and module functions as MCP tools.

Point it at a directory of scripts or at an importable module and every
script or exported function becomes a tool, described from its docstring
and signature. Calls run against persistent interpreter sessions; the
functions of one module share a session, so state one function sets up is
seen by the next.

Architecture:
- host/   the script-execution host (sessions, metadata, diagnostic streams)
- tools/  schema synthesis, conversion, relay, error translation, mediators
- server  MCP wiring over stdio
- cli/    the ``scriptmcp`` command
"""

__version__ = "0.3.0"
__license__ = "Apache-2.0"

from scriptmcp.tools.cancellation import CancellationToken
from scriptmcp.tools.registry import ToolRegistry, build_registry
from scriptmcp.tools.schema import InvocationResult, ToolDescriptor
from scriptmcp.validation.config import Config

__all__ = [
    "CancellationToken",
    "Config",
    "InvocationResult",
    "ToolDescriptor",
    "ToolRegistry",
    "build_registry",
    "__version__",
]
