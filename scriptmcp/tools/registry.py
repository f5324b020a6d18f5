"""Tool registry - discovers commands and assembles the tools that expose them."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from scriptmcp.errors import ConfigurationError
from scriptmcp.host.python_host import SCRIPT_EXTENSION
from scriptmcp.tools.cancellation import CancellationToken
from scriptmcp.tools.marshal import ARGUMENT_DEPTH
from scriptmcp.tools.mediator import HostTool, ModuleSession, ScriptTool
from scriptmcp.tools.schema import InvocationResult, ToolDescriptor
from scriptmcp.tools.serializer import FUNCTION_RESULT_DEPTH, SCRIPT_RESULT_DEPTH
from scriptmcp.tools.translator import error_result
from scriptmcp.validation.config import Config

logger = logging.getLogger(__name__)


class ToolNotFoundError(LookupError):
    """Raised inside a call for a tool name the registry doesn't know."""

    pass


def discover_script_tools(
    root: Union[str, Path],
    result_depth: int = SCRIPT_RESULT_DEPTH,
    argument_depth: int = ARGUMENT_DEPTH,
) -> List[ScriptTool]:
    """
    Build one tool per script file directly inside ``root``.

    A missing directory yields no tools. Any script that can't be described
    aborts the whole scan.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning("Script root %s does not exist; no script tools loaded", root)
        return []

    tools = []
    for path in sorted(root.glob(f"*{SCRIPT_EXTENSION}")):
        if not path.is_file():
            continue
        tools.append(ScriptTool(path, result_depth=result_depth, argument_depth=argument_depth))
        logger.debug("Loaded script tool %s from %s", tools[-1].name, path)
    return tools


def discover_module_tools(
    module: str,
    result_depth: int = FUNCTION_RESULT_DEPTH,
    argument_depth: int = ARGUMENT_DEPTH,
) -> List[HostTool]:
    """Build one tool per exported function of ``module``, on one shared session."""
    session = ModuleSession(module)
    tools = session.function_tools(result_depth=result_depth, argument_depth=argument_depth)
    logger.debug("Loaded %d function tools from module %s", len(tools), session.module_info.name)
    return tools


class ToolRegistry:
    """
    The assembled tool set, keyed by tool name.

    Built once at startup; the tool list never changes afterwards.
    """

    def __init__(self, tools: Iterable[HostTool]):
        self._tools: Dict[str, HostTool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ConfigurationError(f"Duplicate tool name '{tool.name}'.")
            self._tools[tool.name] = tool

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    # ── Tool Lookup ───────────────────────────────────────────────────────

    def get_tool(self, name: str) -> Optional[HostTool]:
        return self._tools.get(name)

    def list_tools(self) -> List[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    # ── Invocation ────────────────────────────────────────────────────────

    def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> InvocationResult:
        """
        Invoke a tool by name.

        Unknown names produce an error result. Cancellation is raised as
        ``InvocationCancelled`` by the tool.
        """
        tool = self._tools.get(name)
        if tool is None:
            return error_result(name, ToolNotFoundError(f"Tool not found: {name}"))
        return tool.invoke(arguments, cancellation)

    def close(self) -> None:
        """Release every host session; function tools of a module share one."""
        closed = set()
        for tool in self._tools.values():
            if id(tool.shared) not in closed:
                closed.add(id(tool.shared))
                tool.close()
        logger.debug("Closed %d host sessions", len(closed))


def build_registry(config: Config) -> ToolRegistry:
    """
    Assemble the registry from configuration.

    Raises:
        ConfigurationError: For a missing or ambiguous tool source.
        DocumentationError: If any command can't be described.
        CommandNotFoundError: If the module can't be imported.
    """
    settings = config.merged
    depths = settings.serialization

    if config.discovery_mode() == "scripts":
        tools: List[HostTool] = list(
            discover_script_tools(
                settings.script_root,
                result_depth=depths.script_result_depth,
                argument_depth=depths.argument_depth,
            )
        )
    else:
        tools = discover_module_tools(
            settings.module,
            result_depth=depths.function_result_depth,
            argument_depth=depths.argument_depth,
        )

    registry = ToolRegistry(tools)
    logger.info("Registered %d tools", len(registry))
    return registry
