"""
scriptmcp validation module.

This module provides configuration validation and schema enforcement.
"""

from scriptmcp.validation.config import Config, ServerConfig

__all__ = ["Config", "ServerConfig"]
