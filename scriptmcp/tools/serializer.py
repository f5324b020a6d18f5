"""Result serialization from host output to protocol content blocks."""

from typing import Any, List, Sequence

from scriptmcp.host.base import HostSession
from scriptmcp.tools.schema import TextContent

SCRIPT_RESULT_DEPTH = 1
FUNCTION_RESULT_DEPTH = 5


def serialize_results(session: HostSession, results: Sequence[Any], depth: int) -> List[TextContent]:
    """
    Turn a command's output into content blocks.

    - no output -> no blocks
    - a single string -> that string, verbatim
    - anything else -> one block of compact JSON from the host serializer
    """
    if not results:
        return []

    if len(results) == 1 and isinstance(results[0], str):
        return [TextContent(text=results[0])]

    value = results[0] if len(results) == 1 else list(results)
    text = session.convert_to_json(value, depth, enums_as_names=True, compress=True)
    return [TextContent(text=text)]
