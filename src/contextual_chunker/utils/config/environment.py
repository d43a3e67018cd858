"""
Environment variable handling for configuration management.

This module maps ``CHUNKER_*`` environment variables onto configuration keys
with type conversion.
"""

import json
import logging
import os
from copy import deepcopy
from typing import Any, Dict, Optional, Tuple

from ...exceptions.config_exceptions import EnvironmentVariableError


logger = logging.getLogger(__name__)


class EnvironmentHandler:
    """
    Environment variable handling for configuration management.

    Handles environment variable overrides, type conversion, and validation.
    """

    ENV_MAPPING: Dict[str, Tuple[str, str]] = {
        'CHUNKER_LOG_LEVEL': ('logging.level', 'string'),
        'CHUNKER_LOG_FORMAT': ('logging.format', 'string'),
        'CHUNKER_LOG_FILE': ('logging.file', 'string'),
        'CHUNKER_CACHE_ENABLED': ('cache.enabled', 'boolean'),
        'CHUNKER_CACHE_CAPACITY': ('cache.chunk_capacity', 'integer'),
        'CHUNKER_STRUCTURE_CACHE_CAPACITY': ('cache.structure_capacity', 'integer'),
        'CHUNKER_EVICTION_POLICY': ('cache.eviction_policy', 'string'),
        'CHUNKER_TARGET_QUALITY': ('quality.target_quality_score', 'float'),
        'CHUNKER_MIN_QUALITY': ('quality.min_quality_score', 'float'),
        'CHUNKER_DOMAIN_KEYWORDS': ('quality.domain_keywords', 'json'),
        'CHUNKER_MAX_WORKERS': ('processing.max_workers', 'integer'),
    }

    def __init__(self) -> None:
        self.logger = logger

    def get_env_mapping(self) -> Dict[str, Tuple[str, str]]:
        """
        Get mapping of environment variable names to (config key, type).
        """
        return dict(self.ENV_MAPPING)

    def convert_env_value(self, value: str, target_type: str = 'string') -> Any:
        """
        Convert environment variable string to appropriate Python type.

        Args:
            value: Environment variable value (always string)
            target_type: Target type ('string', 'boolean', 'integer', 'float', 'json')

        Returns:
            Converted value

        Raises:
            EnvironmentVariableError: If conversion fails
        """
        if not value:
            return None

        try:
            if target_type == 'boolean':
                return value.strip().lower() in ('true', '1', 'yes', 'on', 'enabled')
            elif target_type == 'integer':
                return int(value)
            elif target_type == 'float':
                return float(value)
            elif target_type == 'json':
                return json.loads(value)
            else:
                return value
        except (ValueError, json.JSONDecodeError) as e:
            raise EnvironmentVariableError(
                f"Failed to convert environment variable value '{value}' to {target_type}: {e}",
                expected_type=target_type,
            ) from e

    def apply_environment_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides to configuration.

        Unconvertible values are logged and skipped.
        """
        result = deepcopy(config)

        for env_var, (config_key, target_type) in self.get_env_mapping().items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            try:
                converted_value = self.convert_env_value(env_value, target_type)
            except EnvironmentVariableError as e:
                self.logger.warning(f"Failed to apply environment variable {env_var}: {e.args[0]}")
                continue

            if converted_value is None:
                continue

            if config_key == 'logging.level':
                converted_value = converted_value.upper()

            self._set_nested_value(result, config_key, converted_value)
            self.logger.debug(f"Applied environment override: {env_var} -> {config_key}")

        return result

    def _set_nested_value(self, config: Dict[str, Any], key_path: str, value: Any) -> None:
        keys = key_path.split('.')
        current = config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get_env_var(self, var_name: str, default: Any = None, required: bool = False) -> Optional[str]:
        """
        Get environment variable with optional requirement check.

        Raises:
            EnvironmentVariableError: If required variable is missing
        """
        value = os.getenv(var_name, default)

        if required and value is None:
            raise EnvironmentVariableError(
                f"Required environment variable '{var_name}' is not set",
                var_name
            )

        return value
