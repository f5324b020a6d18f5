"""
Side-channel relay - forwards a session's diagnostic records to a logger.

A relay is attached for exactly one execution. Use ``relay_streams`` so the
subscription is released on every exit path.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from scriptmcp.host.base import HostSession
from scriptmcp.host.streams import (
    DebugRecord,
    ErrorRecord,
    InformationRecord,
    ProgressRecord,
    VerboseRecord,
    WarningRecord,
)
from scriptmcp.tools.translator import format_exception

TOOL_LOGGER = "scriptmcp.tool"


def tool_logger(tool_name: str) -> logging.Logger:
    """The logger a tool relays its diagnostics to."""
    return logging.getLogger(f"{TOOL_LOGGER}.{tool_name}")


def format_error_record(record: ErrorRecord) -> str:
    parts = [format_exception(record.exception)]
    if record.position_message:
        parts.append(record.position_message)
    if record.script_stack_trace:
        parts.append(record.script_stack_trace)
    return "\n".join(parts)


class StreamRelay:
    """Republishes diagnostic records on a logger at the matching level."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def on_debug(self, record: DebugRecord) -> None:
        self._logger.debug("DEBUG: %s", record.message)

    def on_error(self, record: ErrorRecord) -> None:
        self._logger.error("ERROR: %s", format_error_record(record))

    def on_information(self, record: InformationRecord) -> None:
        self._logger.info("INFORMATION: %s", record.message_data)

    def on_progress(self, record: ProgressRecord) -> None:
        self._logger.info("PROGRESS: %s", record.status_description)

    def on_verbose(self, record: VerboseRecord) -> None:
        self._logger.info("VERBOSE: %s", record.message)

    def on_warning(self, record: WarningRecord) -> None:
        self._logger.warning("WARNING: %s", record.message)

    def attach(self, session: HostSession) -> None:
        streams = session.streams
        streams.debug.subscribe(self.on_debug)
        streams.error.subscribe(self.on_error)
        streams.information.subscribe(self.on_information)
        streams.progress.subscribe(self.on_progress)
        streams.verbose.subscribe(self.on_verbose)
        streams.warning.subscribe(self.on_warning)

    def detach(self, session: HostSession) -> None:
        streams = session.streams
        streams.debug.unsubscribe(self.on_debug)
        streams.error.unsubscribe(self.on_error)
        streams.information.unsubscribe(self.on_information)
        streams.progress.unsubscribe(self.on_progress)
        streams.verbose.unsubscribe(self.on_verbose)
        streams.warning.unsubscribe(self.on_warning)


@contextmanager
def relay_streams(session: HostSession, logger: logging.Logger) -> Iterator[StreamRelay]:
    relay = StreamRelay(logger)
    relay.attach(session)
    try:
        yield relay
    finally:
        relay.detach(session)
