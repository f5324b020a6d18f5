"""Shared fixtures."""

import textwrap
from pathlib import Path

import pytest

from scriptmcp.host.base import ParameterInfo, ValueKind

from stubs import StubSession, make_command, make_help


@pytest.fixture
def stub_session():
    command = make_command(
        parameters=[ParameterInfo(name="x", kind=ValueKind.INTEGER, mandatory=True)]
    )
    return StubSession(
        commands=[command],
        help_docs={command.name: make_help(command.name, x="The value.")},
    )


@pytest.fixture
def write_script(tmp_path: Path):
    """Write a file into a temporary script root."""

    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
        return path

    return _write
