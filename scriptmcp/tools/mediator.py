"""
Invocation mediators - run tool calls against host sessions.

A host session publishes diagnostics on one set of streams, so it can only
serve one call at a time. Every call holds its session's lock for the whole
marshal -> execute -> relay-detach -> serialize span.

Script tools each own a private session, so only calls to the same script
wait for each other. Function tools built from one module share a single
session: a function's change to module state must be visible to the next
call. Parallel calls to function tools of one module therefore run one at a
time.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from scriptmcp.errors import ConfigurationError, InvocationCancelled
from scriptmcp.host.base import CommandInfo, HostSession, ModuleInfo
from scriptmcp.host.python_host import PythonSession
from scriptmcp.tools.cancellation import CancellationToken
from scriptmcp.tools.marshal import ARGUMENT_DEPTH, convert_arguments
from scriptmcp.tools.relay import relay_streams, tool_logger
from scriptmcp.tools.schema import InvocationRequest, InvocationResult, ToolDescriptor
from scriptmcp.tools.serializer import FUNCTION_RESULT_DEPTH, SCRIPT_RESULT_DEPTH, serialize_results
from scriptmcp.tools.synthesis import synthesize_tool
from scriptmcp.tools.translator import error_result


# ── Sessions ──────────────────────────────────────────────────────────────


class SharedSession:
    """A host session that is only reachable under its lock."""

    def __init__(self, session: HostSession):
        self._session = session
        self._lock = threading.Lock()

    @contextmanager
    def acquire(self) -> Iterator[HostSession]:
        with self._lock:
            yield self._session

    def close(self) -> None:
        with self.acquire() as session:
            session.close()


class ModuleSession(SharedSession):
    """The shared session of one module and the function tools built on it."""

    def __init__(self, module_name: str, session: Optional[HostSession] = None):
        if not module_name:
            raise ValueError("module_name is required")

        super().__init__(session or PythonSession())
        with self.acquire() as host:
            self.module_info: ModuleInfo = host.import_module(module_name)

    def function_tools(
        self,
        result_depth: int = FUNCTION_RESULT_DEPTH,
        argument_depth: int = ARGUMENT_DEPTH,
    ) -> List["FunctionTool"]:
        """
        Build one tool per exported function.

        Raises:
            ConfigurationError: If the module exports no functions.
            DocumentationError: If any function can't be described.
        """
        if not self.module_info.exported_functions:
            raise ConfigurationError(
                f"The module '{self.module_info.name}' doesn't expose any functions."
            )

        tools: List[FunctionTool] = []
        with self.acquire() as host:
            for command in self.module_info.exported_functions.values():
                descriptor = synthesize_tool(host, command)
                tools.append(
                    FunctionTool(
                        command,
                        descriptor,
                        self,
                        result_depth=result_depth,
                        argument_depth=argument_depth,
                    )
                )
        return tools


# ── Tools ─────────────────────────────────────────────────────────────────


class HostTool:
    """A protocol-facing tool backed by one host command on a locked session."""

    def __init__(
        self,
        command: CommandInfo,
        descriptor: ToolDescriptor,
        shared: SharedSession,
        result_depth: int,
        argument_depth: int = ARGUMENT_DEPTH,
    ):
        self.command = command
        self.descriptor = descriptor
        self.result_depth = result_depth
        self.argument_depth = argument_depth
        self.logger = tool_logger(descriptor.name)
        self.shared = shared

    @property
    def name(self) -> str:
        return self.descriptor.name

    def invoke(
        self,
        arguments: Optional[Dict[str, Any]] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> InvocationResult:
        """
        Run the command with protocol arguments.

        Faults become error results. Only cancellation is raised.

        Raises:
            InvocationCancelled: If ``cancellation`` was set before the call
                reached the host, including while it waited for the session.
        """
        if cancellation is not None:
            cancellation.raise_if_cancelled(self.name)

        request = InvocationRequest(tool_name=self.name, arguments=arguments)
        self.logger.debug("Call %s started", request.call_id)

        t0 = time.perf_counter()
        try:
            result = self._run(request, cancellation)
        except InvocationCancelled:
            self.logger.debug("Call %s cancelled before dispatch", request.call_id)
            raise
        except Exception as exc:
            self.logger.warning("Call %s failed: %s", request.call_id, exc)
            result = error_result(self.name, exc)

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        self.logger.debug("Call %s finished in %dms", request.call_id, elapsed_ms)
        return result

    def _run(
        self, request: InvocationRequest, cancellation: Optional[CancellationToken]
    ) -> InvocationResult:
        with self.shared.acquire() as session:
            if cancellation is not None:
                cancellation.raise_if_cancelled(self.name)

            with relay_streams(session, self.logger):
                arguments = convert_arguments(session, request.arguments, self.argument_depth)
                results = session.execute(self.command, arguments)
            content = serialize_results(session, results, self.result_depth)

        return InvocationResult.success(content)

    def close(self) -> None:
        self.shared.close()


class ScriptTool(HostTool):
    """A script file exposed as a tool, with a session of its own."""

    def __init__(
        self,
        script_path: Union[str, Path],
        session: Optional[HostSession] = None,
        result_depth: int = SCRIPT_RESULT_DEPTH,
        argument_depth: int = ARGUMENT_DEPTH,
    ):
        if not script_path:
            raise ValueError("script_path is required")

        host = session or PythonSession()
        command = host.resolve(str(script_path))
        super().__init__(
            command,
            synthesize_tool(host, command),
            SharedSession(host),
            result_depth=result_depth,
            argument_depth=argument_depth,
        )


class FunctionTool(HostTool):
    """A module function exposed as a tool, on its module's shared session."""

    def __init__(
        self,
        command: CommandInfo,
        descriptor: ToolDescriptor,
        shared: SharedSession,
        result_depth: int = FUNCTION_RESULT_DEPTH,
        argument_depth: int = ARGUMENT_DEPTH,
    ):
        super().__init__(
            command, descriptor, shared, result_depth=result_depth, argument_depth=argument_depth
        )
