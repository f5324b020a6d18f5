"""
scriptmcp Configuration - Configuration loading and validation.

This module provides the Config class for managing scriptmcp configuration
from global (~/.scriptmcp/config.yaml), local (.scriptmcp/config.yaml) and
explicitly named sources.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from scriptmcp.errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SerializationConfig(BaseModel):
    """Depth limits for JSON conversion in both directions."""

    argument_depth: int = Field(default=5, ge=1)
    script_result_depth: int = Field(default=1, ge=1)
    function_result_depth: int = Field(default=5, ge=1)


class LoggingConfig(BaseModel):
    """Configuration for server logging (always written to stderr)."""

    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return level


class ServerConfig(BaseModel):
    """Complete scriptmcp configuration schema."""

    name: str = "scriptmcp"
    script_root: Optional[str] = None
    module: Optional[str] = None
    serialization: SerializationConfig = Field(default_factory=SerializationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Config:
    """
    scriptmcp configuration manager.

    Handles loading, merging, and validating configuration from:
    - Global: ~/.scriptmcp/config.yaml
    - Local: .scriptmcp/config.yaml (nearest one above the working directory)
    - Explicit: a file passed on the command line

    Later sources override earlier ones, and ``override()`` values (the CLI
    flags) override them all.

    Example:
        >>> config = Config.load()
        >>> config.override(module="my_tools")
        >>> config.merged.serialization.function_result_depth
        5
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".scriptmcp"
    LOCAL_CONFIG_DIR = Path(".scriptmcp")

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
        file_config: Optional[Dict[str, Any]] = None,
    ):
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._file_config = file_config or {}
        self._overrides: Dict[str, Any] = {}
        self._merged: Optional[ServerConfig] = None

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load configuration from default locations plus an optional file.

        Raises:
            ConfigurationError: If ``path`` is given but does not exist, or a
                file cannot be parsed.
        """
        if path is not None and not Path(path).exists():
            raise ConfigurationError(f"Config file not found: {path}")

        return cls(
            global_config=cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml"),
            local_config=cls._load_yaml(cls._find_local_config()),
            file_config=cls._load_yaml(Path(path) if path else None),
        )

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return data

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def override(self, **values: Any) -> None:
        """Apply top-level overrides; None values are ignored."""
        for key, value in values.items():
            if value is not None:
                self._overrides[key] = value
        self._merged = None

    def set_source(self, script_root: Optional[str] = None, module: Optional[str] = None) -> None:
        """Replace whichever tool source the files configured."""
        if script_root is None and module is None:
            return
        self._overrides["script_root"] = script_root
        self._overrides["module"] = module
        self._merged = None

    def set_log_level(self, level: str) -> None:
        self._overrides.setdefault("logging", {})["level"] = level
        self._merged = None

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged configuration as a dictionary."""
        merged = self._deep_merge(self._global_config, self._local_config)
        merged = self._deep_merge(merged, self._file_config)
        return self._deep_merge(merged, self._overrides)

    @property
    def merged(self) -> ServerConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                self._merged = ServerConfig(**self.get_merged_config())
            except ValidationError as e:
                raise ConfigurationError(f"Invalid configuration: {e}")
        return self._merged

    def discovery_mode(self) -> str:
        """
        Return ``"scripts"`` or ``"module"``.

        Raises:
            ConfigurationError: If neither or both sources are configured.
        """
        merged = self.merged
        if merged.script_root and merged.module:
            raise ConfigurationError("Configure either script_root or module, not both.")
        if merged.script_root:
            return "scripts"
        if merged.module:
            return "module"
        raise ConfigurationError("No tool source configured: set script_root or module.")

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
