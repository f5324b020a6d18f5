"""Argument marshaling from protocol JSON values to host-native values."""

import json
from typing import Any, Dict, Optional

from scriptmcp.host.base import HostSession

ARGUMENT_DEPTH = 5


def convert_arguments(
    session: HostSession,
    arguments: Optional[Dict[str, Any]],
    depth: int = ARGUMENT_DEPTH,
) -> Optional[Dict[str, Any]]:
    """
    Convert a protocol argument map into native arguments.

    Each value is re-encoded as JSON text and deserialized by the host itself,
    so the host decides what a JSON object or array becomes.
    """
    if arguments is None:
        return None

    native: Dict[str, Any] = {}
    for name, value in arguments.items():
        native[name] = session.convert_from_json(json.dumps(value), depth)
    return native
