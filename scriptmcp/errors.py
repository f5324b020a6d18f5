"""
scriptmcp errors - Exception taxonomy shared by the host and tool layers.

Startup faults (documentation, resolution, configuration) propagate out of
registry assembly. Invocation faults never do: the mediator turns them into
error results. Cancellation is its own outcome and is raised to the caller.
"""


class ScriptMcpError(Exception):
    """Base class for all scriptmcp errors."""

    pass


class DocumentationError(ScriptMcpError):
    """Raised when a command's help or parameter metadata can't produce a schema."""

    pass


class CommandNotFoundError(ScriptMcpError):
    """Raised when a script or function cannot be resolved by the host."""

    pass


class ConfigurationError(ScriptMcpError):
    """Raised when there's a configuration error."""

    pass


class InvocationCancelled(ScriptMcpError):
    """Raised when a call is cancelled before it reaches the host."""

    def __init__(self, tool_name: str):
        super().__init__(f"The call to tool '{tool_name}' was cancelled.")
        self.tool_name = tool_name
