"""Tests for the MCP wiring."""

import logging
import threading

import anyio
import mcp.types as types
import pytest
from mcp.server.lowlevel.server import request_ctx
from mcp.shared.context import RequestContext

from scriptmcp.host.base import ParameterInfo, ValueKind
from scriptmcp.host.streams import write_warning
from scriptmcp.server import (
    ClientLogHandler,
    client_log_level,
    create_server,
    forward_tool_logs,
    to_protocol_result,
)
from scriptmcp.tools.mediator import ScriptTool
from scriptmcp.tools.registry import ToolRegistry
from scriptmcp.tools.schema import InvocationResult, TextContent

from stubs import StubSession, make_command, make_help


class RecordingClientSession:
    """Collects log notifications the server sends."""

    def __init__(self):
        self.messages = []

    async def send_log_message(self, level, data, logger=None, related_request_id=None):
        self.messages.append((level, data, logger, related_request_id))


def _registry(handler):
    command = make_command(
        parameters=[ParameterInfo(name="x", kind=ValueKind.INTEGER, mandatory=True)]
    )
    session = StubSession(
        commands=[command],
        help_docs={command.name: make_help(command.name, x="The value.")},
        handler=handler,
    )
    return ToolRegistry([ScriptTool(command.source, session=session)]), session


def _call_request(name="Get_Thing", arguments=None):
    return types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )


class TestServer:
    def test_success_result(self):
        """Text blocks carry over and the result is not an error."""
        result = to_protocol_result(InvocationResult.success([TextContent(text="42")]))

        assert result.isError is False
        assert [block.text for block in result.content] == ["42"]

    def test_error_result(self):
        """Failures map to isError with a text block."""
        result = to_protocol_result(InvocationResult.failure("boom"))

        assert result.isError is True
        assert result.content[0].type == "text"

    def test_list_tools(self, stub_session):
        """tools/list reports each descriptor with its input schema."""
        registry = ToolRegistry([ScriptTool("Get-Thing.py", session=stub_session)])
        server = create_server(registry, "test-server")
        handler = server.request_handlers[types.ListToolsRequest]

        response = anyio.run(handler, types.ListToolsRequest(method="tools/list"))

        (tool,) = response.root.tools
        assert tool.name == "Get_Thing"
        assert tool.description == "Does a thing."
        assert tool.inputSchema["required"] == ["x"]
        assert tool.inputSchema["additionalProperties"] is False


class TestCallTool:
    def test_call_runs_tool(self):
        """tools/call runs the tool on a worker and returns its output."""
        registry, session = _registry(lambda command, args: [args["x"] * 2])
        handler = create_server(registry).request_handlers[types.CallToolRequest]

        response = anyio.run(handler, _call_request(arguments={"x": 2}))

        assert response.root.isError is False
        assert [block.text for block in response.root.content] == ["4"]
        assert session.execute_calls == 1

    def test_unknown_tool_is_error_result(self):
        """Calling a tool that doesn't exist yields an error result."""
        registry, _ = _registry(lambda command, args: [])
        handler = create_server(registry).request_handlers[types.CallToolRequest]

        response = anyio.run(handler, _call_request(name="nope", arguments={}))

        assert response.root.isError is True
        assert "Tool not found: nope" in response.root.content[0].text

    def test_cancelled_request_never_reaches_host(self):
        """A request cancelled before dispatch doesn't run the tool."""
        registry, session = _registry(lambda command, args: ["never"])
        handler = create_server(registry).request_handlers[types.CallToolRequest]

        async def call_cancelled():
            with anyio.CancelScope() as scope:
                scope.cancel()
                await handler(_call_request(arguments={"x": 1}))
            return scope.cancelled_caught

        assert anyio.run(call_cancelled) is True
        assert session.execute_calls == 0

    def test_diagnostics_sent_to_client(self):
        """Warnings raised during a call reach the client as log notifications."""

        def handler(command, args):
            write_warning("low disk")
            return ["ok"]

        registry, _ = _registry(handler)
        server = create_server(registry)
        call = server.request_handlers[types.CallToolRequest]
        client = RecordingClientSession()

        async def call_in_request():
            token = request_ctx.set(
                RequestContext(request_id=7, meta=None, session=client, lifespan_context=None)
            )
            try:
                return await call(_call_request(arguments={"x": 1}))
            finally:
                request_ctx.reset(token)

        response = anyio.run(call_in_request)

        assert response.root.content[0].text == "ok"
        warnings = [m for m in client.messages if m[0] == "warning"]
        assert warnings == [("warning", "WARNING: low disk", "scriptmcp.tool.Get_Thing", 7)]


class TestClientLogs:
    @pytest.mark.parametrize(
        "levelno, expected",
        [
            (logging.DEBUG, "debug"),
            (5, "debug"),
            (logging.INFO, "info"),
            (logging.WARNING, "warning"),
            (logging.ERROR, "error"),
            (logging.CRITICAL, "critical"),
        ],
    )
    def test_level_mapping(self, levelno, expected):
        """Python log levels map onto MCP logging levels."""
        assert client_log_level(levelno) == expected

    def test_forwards_own_thread_only(self):
        """Only records from the forwarding thread are sent."""
        sent = []
        target = logging.getLogger("scriptmcp.tool.forwarding")

        with forward_tool_logs("forwarding", lambda *message: sent.append(message)):
            target.warning("mine")
            other = threading.Thread(target=target.warning, args=("theirs",))
            other.start()
            other.join()

        target.warning("after")

        assert sent == [("warning", "mine", "scriptmcp.tool.forwarding")]
        assert not any(isinstance(h, ClientLogHandler) for h in target.handlers)

    def test_send_failure_is_handled(self, monkeypatch):
        """A failing sender doesn't break the call that logged."""

        def fail(*message):
            raise RuntimeError("client gone")

        errors = []
        handler = ClientLogHandler(fail)
        monkeypatch.setattr(handler, "handleError", errors.append)
        record = logging.LogRecord("scriptmcp.tool.x", logging.WARNING, __file__, 1, "w", None, None)

        handler.emit(record)

        assert errors == [record]
