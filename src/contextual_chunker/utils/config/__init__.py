"""
Configuration package for the contextual chunker.

Components:
- ConfigPaths: Default file locations (packaged resources, .env)
- FileOperations: JSON and .env loading with path resolution
- SchemaValidator: jsonschema-based validation
- EnvironmentHandler: CHUNKER_* environment overrides
- ConfigManager: Orchestrates defaults, user file and environment
"""

from .paths import ConfigPaths
from .file_operations import FileOperations
from .schema_validation import SchemaValidator
from .environment import EnvironmentHandler
from .manager import ConfigManager, merge_configs

__all__ = [
    "ConfigPaths",
    "FileOperations",
    "SchemaValidator",
    "EnvironmentHandler",
    "ConfigManager",
    "merge_configs",
]
