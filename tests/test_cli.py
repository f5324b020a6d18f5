"""Tests for the scriptmcp command."""

import pytest
from click.testing import CliRunner

from scriptmcp import __version__
from scriptmcp.cli.main import cli
from scriptmcp.tools.registry import ToolRegistry
from scriptmcp.validation.config import Config

WEATHER = '''
def main(city: str, days: int = 1):
    """
    Gets the weather forecast.

    Args:
        city: City name.
        days: Number of days.
    """
    return {"city": city, "days": days}
'''


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "GLOBAL_CONFIG_DIR", tmp_path / "home" / ".scriptmcp")
    monkeypatch.chdir(tmp_path)
    return CliRunner()


class TestCli:
    def test_version(self, runner):
        """--version prints the package version."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"scriptmcp v{__version__}" in result.output

    def test_list_tools(self, runner, write_script, tmp_path):
        """--list prints a table of tools."""
        write_script("Get-Weather.py", WEATHER)

        result = runner.invoke(cli, ["--script-root", str(tmp_path), "--list"])

        assert result.exit_code == 0
        assert "Get_Weather" in result.output
        assert "city*" in result.output
        assert "1 tools" in result.output

    def test_sources_are_exclusive(self, runner, tmp_path):
        """Scripts and a module can't be combined."""
        result = runner.invoke(cli, ["--script-root", str(tmp_path), "--module", "x"])
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_startup_error(self, runner, write_script, tmp_path):
        """Startup errors exit with a message."""
        write_script("bad.py", 'def main(a):\n    """Has no parameter help."""\n')

        result = runner.invoke(cli, ["--script-root", str(tmp_path), "--list"])

        assert result.exit_code == 1
        assert "No description found for the parameter 'a'" in result.output

    def test_no_source(self, runner):
        """No source is a usage error."""
        result = runner.invoke(cli, ["--list"])
        assert result.exit_code == 1
        assert "No tool source configured" in result.output

    def test_source_from_config_file(self, runner, write_script, tmp_path):
        """The tool source can come from the config file."""
        write_script("Get-Weather.py", WEATHER)
        config = tmp_path / "server.yaml"
        config.write_text(f"script_root: {tmp_path}\n")

        result = runner.invoke(cli, ["--config", str(config), "--list"])

        assert result.exit_code == 0
        assert "Get_Weather" in result.output

    def test_serve_with_name_closes_sessions(self, runner, write_script, tmp_path, monkeypatch):
        """--name reaches the server and host sessions are closed on exit."""
        write_script("Get-Weather.py", WEATHER)
        served, closed = [], []
        monkeypatch.setattr(
            "scriptmcp.server.run", lambda registry, name: served.append((len(registry), name))
        )
        monkeypatch.setattr(ToolRegistry, "close", lambda self: closed.append(len(self)))

        result = runner.invoke(cli, ["--script-root", str(tmp_path), "--name", "weather"])

        assert result.exit_code == 0
        assert served == [(1, "weather")]
        assert closed == [1]
