"""
Main configuration manager for the contextual chunker.

This module provides the ConfigManager class that orchestrates loading the
packaged defaults, an optional user configuration file and environment
variable overrides, followed by schema validation and the chunking rules
the schema cannot express.
"""

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...exceptions.config_exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationSchemaError,
    ConfigurationValidationError,
    StrategyConfigurationError,
)
from .environment import EnvironmentHandler
from .file_operations import FileOperations
from .paths import ConfigPaths
from .schema_validation import SchemaValidator


logger = logging.getLogger(__name__)


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge configuration dictionaries; later configs override earlier ones.

    Nested dictionaries are merged key by key, every other value (including
    lists) is replaced wholesale.
    """
    result: Dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = merge_configs(result[key], value)
            else:
                result[key] = deepcopy(value)
    return result


class ConfigManager:
    """
    Configuration manager for the contextual chunker.

    Sources, in increasing precedence:
    - Packaged ``resources/default_config.json``
    - User configuration file (explicit path, or
      ``contextual_chunker.config.json`` in the project root if present)
    - ``CHUNKER_*`` environment variables (optionally loaded from ``.env``)

    Example:
        >>> manager = ConfigManager(load_env=False)
        >>> manager.get("cache.chunk_capacity")
        200
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        project_root: Optional[Union[str, Path]] = None,
        load_env: bool = True,
    ) -> None:
        """
        Initialize the ConfigManager.

        Args:
            config_file: Path to a user configuration file. When given, the file must exist.
            project_root: Project root directory (default: current working directory)
            load_env: Whether to load environment variables from .env file
        """
        self.project_root = Path(project_root or os.getcwd()).resolve()
        self.paths = ConfigPaths()
        self._explicit_config_file = config_file is not None
        self.config_file = config_file or self.paths.DEFAULT_CONFIG_FILE

        self._config: Dict[str, Any] = {}
        self._loaded = False
        self._sources: List[str] = []

        self.logger = logger

        self.file_ops = FileOperations(self.project_root, self.paths.ENV_FILE)
        self.schema_validator = SchemaValidator(self.file_ops, self.paths)
        self.env_handler = EnvironmentHandler()

        if load_env:
            self.file_ops.load_environment_variables()

    @property
    def config(self) -> Dict[str, Any]:
        """Get the current configuration. Loads if not already loaded."""
        if not self._loaded:
            self.load_config()
        return deepcopy(self._config)

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._loaded

    @property
    def sources(self) -> List[str]:
        """Files that contributed to the loaded configuration, in merge order."""
        return list(self._sources)

    def load_config(self, force_reload: bool = False, validate: bool = True) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        Args:
            force_reload: Force reloading even if already loaded
            validate: Whether to validate configuration against schema

        Returns:
            Loaded configuration dictionary

        Raises:
            ConfigurationFileNotFoundError: If an explicit config file is missing
            ConfigurationValidationError: If validation fails
            ConfigurationError: For any other loading failure
        """
        if self._loaded and not force_reload:
            self.logger.debug("Configuration already loaded, returning cached version")
            return deepcopy(self._config)

        try:
            sources = []
            default_path = Path(self.paths.DEFAULT_CONFIG_DIR) / self.paths.DEFAULT_CONFIG_NAME
            defaults = self.file_ops.load_json_file(default_path)
            sources.append(str(default_path))

            user_config: Dict[str, Any] = {}
            user_path = self.file_ops.resolve_path(self.config_file)
            if self._explicit_config_file or user_path.exists():
                self.logger.info(f"Loading configuration from {user_path}")
                user_config = self.file_ops.load_json_file(user_path)
                sources.append(str(user_path))
            else:
                self.logger.debug(f"No user configuration at {user_path}, using packaged defaults")

            merged = merge_configs(defaults, user_config)
            merged = self.env_handler.apply_environment_overrides(merged)

            if validate:
                source = str(user_path) if user_config else str(default_path)
                self.schema_validator.validate_config_against_schema(merged, config_file=source)
                self.validate_chunking_rules(merged, config_file=source)

            self._config = merged
            self._sources = sources
            self._loaded = True
            self.logger.debug("Configuration loaded successfully")
            return deepcopy(self._config)

        except (ConfigurationValidationError, ConfigurationSchemaError, ConfigurationFileNotFoundError) as e:
            self.logger.error(f"Configuration loading failed: {e.args[0]}")
            self._loaded = False
            raise
        except ConfigurationError:
            self._loaded = False
            raise
        except Exception as e:
            error_msg = f"Unexpected error loading configuration: {e}"
            self.logger.error(error_msg, exc_info=True)
            self._loaded = False
            raise ConfigurationError(error_msg) from e

    def reload_config(self) -> Dict[str, Any]:
        """Force a reload from all sources."""
        return self.load_config(force_reload=True)

    def validate_chunking_rules(self, config: Dict[str, Any], config_file: str = "unknown") -> None:
        """
        Check the cross-field rules a JSON schema cannot express.

        Raises:
            StrategyConfigurationError: If a strategy's size overrides are inconsistent
            ConfigurationValidationError: If quality thresholds or weights are inconsistent
        """
        from ...core.document_processor.chunking.config import get_strategy_config

        strategies = config.get("strategies") or {}
        for name in strategies:
            try:
                get_strategy_config(name, strategies)
            except (TypeError, ValueError) as e:
                raise StrategyConfigurationError(name, str(e), config_file) from e

        quality = config.get("quality") or {}
        target = quality.get("target_quality_score")
        minimum = quality.get("min_quality_score")
        if target is not None and minimum is not None and minimum > target:
            reason = f"min_quality_score ({minimum}) exceeds target_quality_score ({target})"
            raise ConfigurationValidationError(
                f"Configuration validation failed: {reason}",
                config_file,
                validation_errors=[reason],
                invalid_fields=["quality.min_quality_score", "quality.target_quality_score"],
            )

        weights = quality.get("weights") or {}
        if weights and sum(weights.values()) <= 0:
            raise ConfigurationValidationError(
                "Configuration validation failed: quality weights must not all be zero",
                config_file,
                validation_errors=["quality weights must not all be zero"],
                invalid_fields=["quality.weights"],
            )

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Dotted key path (e.g. ``quality.target_quality_score``)
            default: Value returned when the key is missing
        """
        if not self._loaded:
            self.load_config()

        current: Any = self._config
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return deepcopy(current)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation (in memory only)."""
        if not self._loaded:
            self.load_config()

        keys = key.split('.')
        current = self._config
        for part in keys[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[keys[-1]] = value
        self.logger.debug(f"Configuration value set: {key}")

    def has(self, key: str) -> bool:
        """Check whether a dotted key exists."""
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def reset(self) -> None:
        """Drop the loaded configuration."""
        self._config = {}
        self._loaded = False
        self._sources = []

    def get_config_summary(self) -> Dict[str, Any]:
        """Summarize the loaded configuration for display."""
        config = self.config
        return {
            "version": config.get("version", "unknown"),
            "sources": self.sources,
            "project_root": str(self.project_root),
            "log_level": config.get("logging", {}).get("level"),
            "cache_enabled": config.get("cache", {}).get("enabled"),
            "strategy_overrides": sorted(config.get("strategies", {}).keys()),
        }
