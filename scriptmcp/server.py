"""
MCP server wiring for a tool registry.

Tool calls are blocking host executions, so each one runs on a worker
thread. While a call runs, records on its tool logger are also sent to the
client as ``notifications/message``. Logging goes to stderr; stdout carries
the protocol stream.
"""

from __future__ import annotations

import functools
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

import anyio
import anyio.from_thread
import anyio.lowlevel
import anyio.to_thread
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from scriptmcp import __version__
from scriptmcp.tools.cancellation import CancellationToken
from scriptmcp.tools.registry import ToolRegistry
from scriptmcp.tools.relay import tool_logger
from scriptmcp.tools.schema import InvocationResult

logger = logging.getLogger(__name__)

# (client level, data, logger name)
LogSender = Callable[[str, str, str], None]

_CLIENT_LEVELS = (
    (logging.CRITICAL, "critical"),
    (logging.ERROR, "error"),
    (logging.WARNING, "warning"),
    (logging.INFO, "info"),
)


def client_log_level(levelno: int) -> str:
    for threshold, name in _CLIENT_LEVELS:
        if levelno >= threshold:
            return name
    return "debug"


class ClientLogHandler(logging.Handler):
    """
    Sends log records to the MCP client.

    Only records emitted on the thread that created the handler are sent, so
    concurrent calls to one tool each reach the client once.
    """

    def __init__(self, send: LogSender):
        super().__init__()
        self._send = send
        self._thread = threading.get_ident()

    def emit(self, record: logging.LogRecord) -> None:
        if record.thread != self._thread:
            return
        try:
            self._send(client_log_level(record.levelno), self.format(record), record.name)
        except Exception:
            self.handleError(record)


@contextmanager
def forward_tool_logs(tool_name: str, send: LogSender) -> Iterator[ClientLogHandler]:
    """Attach a ClientLogHandler to a tool's logger for the current thread."""
    handler = ClientLogHandler(send)
    target = tool_logger(tool_name)
    target.addHandler(handler)
    try:
        yield handler
    finally:
        target.removeHandler(handler)


def to_protocol_result(result: InvocationResult) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=block.text) for block in result.content],
        isError=result.is_error,
    )


def _client_sender(server: Server) -> Optional[LogSender]:
    """Build a sender for the current request, or None outside of one."""
    try:
        context = server.request_context
    except LookupError:
        return None

    session = context.session
    request_id = context.request_id

    def send(level: str, data: str, logger_name: str) -> None:
        anyio.from_thread.run(
            functools.partial(
                session.send_log_message,
                level=level,
                data=data,
                logger=logger_name,
                related_request_id=request_id,
            )
        )

    return send


def _call_in_worker(
    registry: ToolRegistry,
    name: str,
    arguments: Optional[Dict[str, Any]],
    token: CancellationToken,
    send: Optional[LogSender],
) -> InvocationResult:
    if send is None:
        return registry.call_tool(name, arguments, token)
    with forward_tool_logs(name, send):
        return registry.call_tool(name, arguments, token)


def create_server(registry: ToolRegistry, name: str = "scriptmcp") -> Server:
    """Create an MCP server exposing every tool in ``registry``."""
    server = Server(name, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema,
            )
            for descriptor in registry.list_tools()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        send = _client_sender(server)
        token = CancellationToken()
        try:
            await anyio.lowlevel.checkpoint_if_cancelled()
            # An abandoned worker keeps running; the token stops it short of
            # the host if it is still waiting for its session.
            result = await anyio.to_thread.run_sync(
                _call_in_worker, registry, name, arguments, token, send, abandon_on_cancel=True
            )
        except anyio.get_cancelled_exc_class():
            token.cancel()
            logger.debug("Call to %s cancelled by the client", name)
            raise
        return to_protocol_result(result)

    return server


async def serve(registry: ToolRegistry, name: str = "scriptmcp") -> None:
    """Serve ``registry`` over stdio until the client disconnects."""
    server = create_server(registry, name)
    logger.info("Serving %d tools over stdio as %s", len(registry), name)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run(registry: ToolRegistry, name: str = "scriptmcp") -> None:
    anyio.run(serve, registry, name)
