"""
scriptmcp tools module.

Turns host commands into protocol tools: schema synthesis, argument and
result conversion, diagnostic relay, error translation, and the mediators
that run calls against exclusive or shared host sessions.
"""

from scriptmcp.tools.cancellation import CancellationToken
from scriptmcp.tools.mediator import FunctionTool, HostTool, ModuleSession, ScriptTool, SharedSession
from scriptmcp.tools.registry import (
    ToolRegistry,
    build_registry,
    discover_module_tools,
    discover_script_tools,
)
from scriptmcp.tools.schema import InvocationRequest, InvocationResult, TextContent, ToolDescriptor
from scriptmcp.tools.synthesis import synthesize_tool

__all__ = [
    "CancellationToken",
    "FunctionTool",
    "HostTool",
    "InvocationRequest",
    "InvocationResult",
    "ModuleSession",
    "ScriptTool",
    "SharedSession",
    "TextContent",
    "ToolDescriptor",
    "ToolRegistry",
    "build_registry",
    "discover_module_tools",
    "discover_script_tools",
    "synthesize_tool",
]
