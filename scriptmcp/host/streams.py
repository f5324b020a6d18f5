"""
Diagnostic streams - side-channel records produced while a command runs.

Every host session owns one ``DiagnosticStreams`` bundle. Commands write to
it through the ``write_*`` functions below, which post to the streams of the
session executing on the current thread. Subscribers are notified
synchronously, in emission order, before the record is buffered.
"""

from __future__ import annotations

import logging
import threading
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)


class RecordKind(str, Enum):
    DEBUG = "debug"
    ERROR = "error"
    WARNING = "warning"
    VERBOSE = "verbose"
    INFORMATION = "information"
    PROGRESS = "progress"


@dataclass
class DebugRecord:
    message: str
    kind: RecordKind = RecordKind.DEBUG


@dataclass
class VerboseRecord:
    message: str
    kind: RecordKind = RecordKind.VERBOSE


@dataclass
class WarningRecord:
    message: str
    kind: RecordKind = RecordKind.WARNING


@dataclass
class InformationRecord:
    message_data: str
    source: Optional[str] = None
    kind: RecordKind = RecordKind.INFORMATION


@dataclass
class ProgressRecord:
    activity: str
    status_description: str
    percent_complete: int = -1
    kind: RecordKind = RecordKind.PROGRESS


@dataclass
class ErrorRecord:
    """A non-terminating error; the command keeps running after writing it."""

    exception: BaseException
    position_message: Optional[str] = None
    script_stack_trace: Optional[str] = None
    kind: RecordKind = RecordKind.ERROR


DiagnosticRecord = Union[
    DebugRecord, VerboseRecord, WarningRecord, InformationRecord, ProgressRecord, ErrorRecord
]
RecordHandler = Callable[[DiagnosticRecord], None]


class DiagnosticStream:
    """One record stream with subscribe/unsubscribe hooks."""

    def __init__(self, kind: RecordKind):
        self.kind = kind
        self._records: List[DiagnosticRecord] = []
        self._handlers: List[RecordHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: RecordHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def unsubscribe(self, handler: RecordHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def add(self, record: DiagnosticRecord) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            handler(record)
        with self._lock:
            self._records.append(record)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __iter__(self) -> Iterator[DiagnosticRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)


class DiagnosticStreams:
    """The six side-channel streams of a host session."""

    def __init__(self):
        self.debug = DiagnosticStream(RecordKind.DEBUG)
        self.error = DiagnosticStream(RecordKind.ERROR)
        self.warning = DiagnosticStream(RecordKind.WARNING)
        self.verbose = DiagnosticStream(RecordKind.VERBOSE)
        self.information = DiagnosticStream(RecordKind.INFORMATION)
        self.progress = DiagnosticStream(RecordKind.PROGRESS)

    def __iter__(self) -> Iterator[DiagnosticStream]:
        return iter(
            (self.debug, self.error, self.warning, self.verbose, self.information, self.progress)
        )

    def for_kind(self, kind: RecordKind) -> DiagnosticStream:
        return getattr(self, kind.value)

    def clear(self) -> None:
        for stream in self:
            stream.clear()


# ── Emitters ──────────────────────────────────────────────────────────────

_current_streams: ContextVar[Optional[DiagnosticStreams]] = ContextVar(
    "scriptmcp_current_streams", default=None
)


@contextmanager
def bind_streams(streams: DiagnosticStreams) -> Iterator[DiagnosticStreams]:
    """Route ``write_*`` calls on this thread to ``streams`` for the block."""
    token = _current_streams.set(streams)
    try:
        yield streams
    finally:
        _current_streams.reset(token)


def _emit(record: DiagnosticRecord) -> None:
    streams = _current_streams.get()
    if streams is None:
        # Outside a host session (e.g. a script run by hand) records go to logging.
        logger.log(_FALLBACK_LEVELS[record.kind], "%s: %s", record.kind.name, _record_text(record))
        return
    streams.for_kind(record.kind).add(record)


_FALLBACK_LEVELS = {
    RecordKind.DEBUG: logging.DEBUG,
    RecordKind.VERBOSE: logging.INFO,
    RecordKind.INFORMATION: logging.INFO,
    RecordKind.PROGRESS: logging.INFO,
    RecordKind.WARNING: logging.WARNING,
    RecordKind.ERROR: logging.ERROR,
}


def _record_text(record: DiagnosticRecord) -> str:
    if isinstance(record, InformationRecord):
        return record.message_data
    if isinstance(record, ProgressRecord):
        return record.status_description
    if isinstance(record, ErrorRecord):
        return str(record.exception)
    return record.message


def write_debug(message: object) -> None:
    _emit(DebugRecord(str(message)))


def write_verbose(message: object) -> None:
    _emit(VerboseRecord(str(message)))


def write_warning(message: object) -> None:
    _emit(WarningRecord(str(message)))


def write_information(message: object, source: Optional[str] = None) -> None:
    _emit(InformationRecord(str(message), source=source))


def write_progress(activity: str, status: str, percent_complete: int = -1) -> None:
    _emit(ProgressRecord(activity, status, percent_complete))


def write_error(error: Union[BaseException, str]) -> None:
    """
    Write a non-terminating error record.

    The position of the caller and the call stack leading to it are captured
    alongside the exception.
    """
    exception = error if isinstance(error, BaseException) else RuntimeError(str(error))
    stack = traceback.extract_stack()[:-1]
    position = None
    if stack:
        frame = stack[-1]
        position = f"At {frame.filename}:{frame.lineno} in {frame.name}"
        if frame.line:
            position += f"\n+ {frame.line}"
    _emit(
        ErrorRecord(
            exception=exception,
            position_message=position,
            script_stack_trace="".join(traceback.format_list(stack)).rstrip() or None,
        )
    )
