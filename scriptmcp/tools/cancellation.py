"""Cooperative cancellation for tool calls."""

import threading

from scriptmcp.errors import InvocationCancelled


class CancellationToken:
    """
    Set by the protocol layer when a caller abandons a request.

    Tools check it before dispatch and again once they hold their session,
    so a call still waiting for a busy session never reaches the host. A host
    call that has already started runs to completion.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self, tool_name: str) -> None:
        if self._event.is_set():
            raise InvocationCancelled(tool_name)
