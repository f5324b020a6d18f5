"""Error translation from raised exceptions to error-flagged tool results."""

from typing import Iterator, Optional

from scriptmcp.tools.schema import InvocationResult

ERROR_TEMPLATE = """Failed to run the tool '{tool_name}' due to the following error:
```
{message}
```
Check to see if it's caused by the passed-in command name or parameter name(s), and if so, please try again."""


def _inner(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__context__ is not None and not exc.__suppress_context__:
        return exc.__context__
    return None


def cause_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and each exception it was caused by, outermost first."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = _inner(current)


def _message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def format_exception(exc: BaseException) -> str:
    """Flatten an exception and its causes, one per line."""
    chain = list(cause_chain(exc))
    message = _message(chain[0])
    for inner in chain[1:]:
        if not message.endswith("\n"):
            message += "\n"
        message += f"   Inner -> {_message(inner)}"
    return message


def error_result(tool_name: str, exc: BaseException) -> InvocationResult:
    return InvocationResult.failure(
        ERROR_TEMPLATE.format(tool_name=tool_name, message=format_exception(exc))
    )
