"""
Configuration file paths and constants for the contextual chunker.

This module provides the ConfigPaths dataclass containing default paths
and constants used throughout the configuration system.
"""

from dataclasses import dataclass
from pathlib import Path

RESOURCES_DIR = Path(__file__).resolve().parent.parent.parent / "resources"


@dataclass
class ConfigPaths:
    """Configuration file paths and constants."""

    DEFAULT_CONFIG_FILE: str = "contextual_chunker.config.json"
    DEFAULT_CONFIG_DIR: str = str(RESOURCES_DIR)
    DEFAULT_CONFIG_NAME: str = "default_config.json"
    SCHEMA_DIR: str = str(RESOURCES_DIR)
    DEFAULT_CONFIG_SCHEMA: str = "config_schema.json"
    ENV_FILE: str = ".env"
