"""Google-style docstring parsing into structured help documents."""

from __future__ import annotations

import inspect
import re
import textwrap
from typing import Dict, List, Optional

from scriptmcp.host.base import HelpDocument, HelpParameter

_SECTION_RE = re.compile(r"^(?P<title>[A-Za-z][A-Za-z ]*):\s*$")
_ENTRY_RE = re.compile(r"^(?P<name>\*{0,2}\w+)\s*(?:\((?P<type>[^)]*)\))?\s*:(?P<desc>.*)$")

_PARAMETER_SECTIONS = {"args", "arguments", "parameters", "params"}
_KNOWN_SECTIONS = _PARAMETER_SECTIONS | {
    "returns",
    "return",
    "yields",
    "raises",
    "example",
    "examples",
    "note",
    "notes",
    "outputs",
    "see also",
}


def parse_help(name: str, docstring: Optional[str]) -> Optional[HelpDocument]:
    """
    Parse a docstring into a HelpDocument.

    Returns None when there is no docstring at all. A docstring without a
    description paragraph still parses; callers decide whether that is an
    error.
    """
    if not docstring or not docstring.strip():
        return None

    preamble: List[str] = []
    sections: Dict[str, List[str]] = {}
    current: Optional[str] = None

    for line in inspect.cleandoc(docstring).splitlines():
        match = _SECTION_RE.match(line)
        if match and match.group("title").strip().lower() in _KNOWN_SECTIONS:
            current = match.group("title").strip().lower()
            sections.setdefault(current, [])
            continue
        if current is None:
            preamble.append(line)
        else:
            sections[current].append(line)

    parameters: List[HelpParameter] = []
    extra: Dict[str, str] = {}
    for title, lines in sections.items():
        if title in _PARAMETER_SECTIONS:
            parameters.extend(_parse_entries(lines))
        else:
            extra[title] = textwrap.dedent("\n".join(lines)).strip()

    return HelpDocument(
        name=name,
        description=_paragraphs(preamble),
        parameters=parameters,
        sections=extra,
    )


def _paragraphs(lines: List[str]) -> List[str]:
    paragraphs: List[str] = []
    current: List[str] = []
    for line in lines:
        if line.strip():
            current.append(line.strip())
        elif current:
            paragraphs.append(" ".join(current))
            current = []
    if current:
        paragraphs.append(" ".join(current))
    return paragraphs


def _parse_entries(lines: List[str]) -> List[HelpParameter]:
    entries: List[List] = []
    for line in textwrap.dedent("\n".join(lines)).splitlines():
        if not line.strip():
            continue
        if not line[0].isspace():
            match = _ENTRY_RE.match(line)
            if match:
                entries.append([match.group("name").lstrip("*"), [match.group("desc").strip()]])
                continue
        if entries:
            # continuation line
            entries[-1][1].append(line.strip())

    return [
        HelpParameter(name=name, description=" ".join(part for part in parts if part) or None)
        for name, parts in entries
    ]
