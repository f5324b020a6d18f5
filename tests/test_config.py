"""Tests for configuration management."""

from pathlib import Path

import pytest

from scriptmcp.errors import ConfigurationError
from scriptmcp.validation.config import Config, ServerConfig


class TestConfig:
    """Tests for Config class."""

    @pytest.fixture
    def isolated(self, tmp_path, monkeypatch):
        """Point global and local config lookups at an empty directory."""
        monkeypatch.setattr(Config, "GLOBAL_CONFIG_DIR", tmp_path / "home" / ".scriptmcp")
        monkeypatch.chdir(tmp_path)
        return tmp_path

    def test_deep_merge(self):
        """Test deep merging of dictionaries."""
        config = Config()

        base = {
            "a": 1,
            "b": {"c": 2, "d": 3},
            "e": [1, 2, 3],
        }

        override = {
            "b": {"c": 10, "f": 5},
            "g": "new",
        }

        result = config._deep_merge(base, override)

        assert result["a"] == 1
        assert result["b"]["c"] == 10
        assert result["b"]["d"] == 3
        assert result["b"]["f"] == 5
        assert result["e"] == [1, 2, 3]
        assert result["g"] == "new"

    def test_get_merged_config(self):
        """Test source precedence: global < local < file."""
        config = Config(
            global_config={"name": "global", "serialization": {"argument_depth": 3}},
            local_config={"name": "local"},
            file_config={"serialization": {"script_result_depth": 2}},
        )
        merged = config.get_merged_config()

        assert merged["name"] == "local"
        assert merged["serialization"] == {"argument_depth": 3, "script_result_depth": 2}

    def test_overrides_win(self):
        """Test that command-line overrides beat every file."""
        config = Config(file_config={"name": "from-file", "logging": {"level": "DEBUG"}})
        config.override(name="from-cli", script_root=None)
        config.set_log_level("error")

        assert config.merged.name == "from-cli"
        assert config.merged.logging.level == "ERROR"
        assert config.merged.script_root is None

    def test_set_source_replaces_file_source(self):
        """Test that a CLI source replaces the file's source."""
        config = Config(file_config={"module": "ops_tools"})
        config.set_source(script_root="./scripts")

        assert config.merged.script_root == "./scripts"
        assert config.merged.module is None
        assert config.discovery_mode() == "scripts"

    def test_set_source_without_values_keeps_file_source(self):
        """Test that an empty source override changes nothing."""
        config = Config(file_config={"module": "ops_tools"})
        config.set_source()
        assert config.discovery_mode() == "module"

    def test_discovery_mode_errors(self):
        """Test missing and conflicting tool sources."""
        with pytest.raises(ConfigurationError, match="No tool source"):
            Config().discovery_mode()
        with pytest.raises(ConfigurationError, match="not both"):
            Config(file_config={"module": "m", "script_root": "s"}).discovery_mode()

    def test_invalid_values(self):
        """Test that out-of-range values are rejected."""
        config = Config(file_config={"serialization": {"argument_depth": 0}})
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            _ = config.merged

    def test_load_files(self, isolated):
        """Test loading local and extra config files."""
        local_dir = isolated / ".scriptmcp"
        local_dir.mkdir()
        (local_dir / "config.yaml").write_text("name: local-server\nmodule: ops_tools\n")
        extra = isolated / "extra.yaml"
        extra.write_text("logging:\n  level: warning\n")

        config = Config.load(extra)

        assert config.merged.name == "local-server"
        assert config.merged.module == "ops_tools"
        assert config.merged.logging.level == "WARNING"

    def test_load_without_files(self, isolated):
        """Test defaults when no config files exist."""
        assert Config.load().merged == ServerConfig()

    def test_load_missing_file(self, isolated):
        """Test an explicit config path that doesn't exist."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            Config.load(Path("nope.yaml"))

    def test_load_non_mapping(self, isolated):
        """Test a config file whose top level is not a mapping."""
        bad = isolated / "bad.yaml"
        bad.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            Config.load(bad)

    def test_load_invalid_yaml(self, isolated):
        """Test a config file that isn't valid YAML."""
        bad = isolated / "bad.yaml"
        bad.write_text("name: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to load config"):
            Config.load(bad)


class TestServerConfig:
    """Tests for ServerConfig schema."""

    def test_default_config(self):
        """Test creating default configuration."""
        config = ServerConfig()

        assert config.name == "scriptmcp"
        assert config.serialization.argument_depth == 5
        assert config.serialization.script_result_depth == 1
        assert config.serialization.function_result_depth == 5
        assert config.logging.level == "INFO"

    def test_unknown_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValueError):
            ServerConfig(logging={"level": "LOUD"})
