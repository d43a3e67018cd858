"""
Schema validation for configuration management.

This module provides JSON schema loading, validation, and error handling
for the contextual chunker configuration system.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema

from ...exceptions.config_exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationSchemaError,
    ConfigurationValidationError,
)
from .file_operations import FileOperations
from .paths import ConfigPaths


logger = logging.getLogger(__name__)


class SchemaValidator:
    """
    Schema validation for configuration management.

    Handles JSON schema loading, validation, and error reporting.
    """

    def __init__(self, file_ops: FileOperations, paths: ConfigPaths) -> None:
        self.file_ops = file_ops
        self.paths = paths
        self.logger = logger
        self._schema_cache: Optional[Dict[str, Any]] = None

    def load_schema(self, schema_file: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Load JSON schema for configuration validation.

        Args:
            schema_file: Path to schema file (default: packaged config_schema.json)

        Returns:
            Loaded JSON schema

        Raises:
            ConfigurationSchemaError: If schema loading fails
        """
        use_default = schema_file is None
        if use_default and self._schema_cache is not None:
            return self._schema_cache

        if use_default:
            schema_path = Path(self.paths.SCHEMA_DIR) / self.paths.DEFAULT_CONFIG_SCHEMA
        else:
            schema_path = self.file_ops.resolve_path(schema_file)

        try:
            schema = self.file_ops.load_json_file(schema_path)
        except ConfigurationFileNotFoundError as e:
            raise ConfigurationSchemaError(
                f"Configuration schema file not found: {schema_path}",
                str(schema_path)
            ) from e
        except ConfigurationError as e:
            raise ConfigurationSchemaError(
                f"Invalid configuration schema: {e}",
                str(schema_path)
            ) from e

        if use_default:
            self._schema_cache = schema
        return schema

    def validate_config_against_schema(
        self,
        config: Dict[str, Any],
        schema: Optional[Dict[str, Any]] = None,
        config_file: str = "unknown"
    ) -> None:
        """
        Validate configuration against JSON schema.

        Args:
            config: Configuration dictionary to validate
            schema: JSON schema (loads default if not provided)
            config_file: Configuration file name for error reporting

        Raises:
            ConfigurationValidationError: If validation fails
            ConfigurationSchemaError: If the schema itself is invalid
        """
        if schema is None:
            try:
                schema = self.load_schema()
            except ConfigurationSchemaError as e:
                self.logger.warning(f"Skipping configuration validation: {e.args[0]}")
                return

        try:
            jsonschema.validate(config, schema)
        except jsonschema.ValidationError as e:
            validation_errors = [e.message]
            invalid_fields = []

            if e.absolute_path:
                invalid_fields.append(".".join(str(p) for p in e.absolute_path))

            for ctx_error in getattr(e, 'context', None) or []:
                validation_errors.append(ctx_error.message)
                if ctx_error.absolute_path:
                    invalid_fields.append(".".join(str(p) for p in ctx_error.absolute_path))

            raise ConfigurationValidationError(
                f"Configuration validation failed: {e.message}",
                config_file,
                validation_errors,
                invalid_fields
            ) from e
        except jsonschema.SchemaError as e:
            raise ConfigurationSchemaError(
                f"Invalid JSON schema: {e.message}",
                schema_errors=[e.message]
            ) from e

    def validate_config(
        self,
        config: Dict[str, Any],
        schema_file: Optional[str] = None,
        config_file: str = "unknown"
    ) -> bool:
        """
        Validate configuration against schema.

        Returns:
            True if validation passes

        Raises:
            ConfigurationValidationError: If validation fails
            ConfigurationSchemaError: If schema is invalid
        """
        schema = None
        if schema_file:
            schema = self.load_schema(schema_file)

        self.validate_config_against_schema(config, schema, config_file)
        return True
