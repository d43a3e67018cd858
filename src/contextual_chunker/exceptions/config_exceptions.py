"""
Configuration errors for the contextual chunker.

Raised by the configuration layer when a file cannot be found or parsed,
when values break the JSON schema or the chunking rules the schema cannot
express (strategy size ordering, quality thresholds), and when a
``CHUNKER_*`` environment variable cannot be converted. Every error carries
suggestions, which the CLI prints below the message.
"""

from typing import Dict, Iterable, List, Optional, Sequence

# shown for invalid fields, keyed by top-level configuration section
SECTION_HINTS: Dict[str, str] = {
    "strategies": (
        "Strategy sizes need min_size <= target_size <= max_size, "
        "min_size * 2 <= max_size and overlap_size < max_size"
    ),
    "cache": "cache.eviction_policy is 'fifo' or 'lru' and capacities are positive integers",
    "quality": "Quality scores lie in [0, 1] and min_quality_score may not exceed target_quality_score",
    "logging": "logging.level is a standard level name and logging.format is standard, json or detailed",
    "processing": "processing.max_workers is at least 1 and processing.snap_tolerance is not negative",
}


def numbered_block(title: str, items: Sequence[str]) -> str:
    """Render items as a numbered block under a title."""
    lines = [f"\n\n{title}:"]
    lines.extend(f"  {i}. {item}" for i, item in enumerate(items, 1))
    return "\n".join(lines)


def section_hints(fields: Iterable[str]) -> List[str]:
    """Hints for the configuration sections the dotted field names belong to."""
    hints: List[str] = []
    for name in fields:
        hint = SECTION_HINTS.get(name.split(".", 1)[0])
        if hint and hint not in hints:
            hints.append(hint)
    return hints


class ConfigurationError(Exception):
    """Base exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error description
            config_file: Configuration file path that caused the error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.config_file = config_file
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        msg = super().__str__()
        if self.config_file:
            msg = f"{msg}\nConfig file: {self.config_file}"
        if self.suggestions:
            msg += numbered_block("Suggestions", self.suggestions)
        return msg


class ConfigurationFileNotFoundError(ConfigurationError):
    """An explicitly requested configuration file does not exist."""

    def __init__(self, message: str, config_file: Optional[str] = None) -> None:
        super().__init__(message, config_file, [
            "Check the path given with --config-path",
            "Omit --config-path to use contextual_chunker.config.json from the "
            "project root, or the packaged defaults when there is none",
        ])


class ConfigurationValidationError(ConfigurationError):
    """Configuration values break the schema or the chunking rules."""

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        validation_errors: Optional[List[str]] = None,
        invalid_fields: Optional[List[str]] = None
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error description
            config_file: Configuration file with validation errors
            validation_errors: Individual validation messages
            invalid_fields: Dotted names of the offending fields
        """
        invalid_fields = invalid_fields or []
        suggestions = section_hints(invalid_fields)
        if invalid_fields:
            suggestions.append(f"Fix these fields: {', '.join(invalid_fields)}")
        else:
            suggestions.append("Compare with the packaged default_config.json")

        super().__init__(message, config_file, suggestions)
        self.validation_errors = validation_errors or []
        self.invalid_fields = invalid_fields

    def __str__(self) -> str:
        msg = super().__str__()
        if self.validation_errors:
            msg += numbered_block("Validation errors", self.validation_errors)
        return msg


class StrategyConfigurationError(ConfigurationValidationError):
    """Size overrides of one strategy cannot form a valid strategy configuration."""

    def __init__(self, strategy: str, reason: str, config_file: Optional[str] = None) -> None:
        super().__init__(
            f"Invalid size overrides for strategy '{strategy}': {reason}",
            config_file,
            validation_errors=[reason],
            invalid_fields=[f"strategies.{strategy}"],
        )
        self.strategy = strategy


class EnvironmentVariableError(ConfigurationError):
    """A CHUNKER_* environment variable is missing or cannot be converted."""

    def __init__(
        self,
        message: str,
        variable_name: Optional[str] = None,
        expected_type: Optional[str] = None,
    ) -> None:
        suggestions = []
        if expected_type:
            suggestions.append(f"Use a value that converts to {expected_type}")
        if variable_name:
            suggestions.append(f"Set {variable_name} in the environment or in .env in the project root")
        suggestions.append("Values already in the process environment take precedence over .env")

        super().__init__(message, None, suggestions)
        self.variable_name = variable_name
        self.expected_type = expected_type


class ConfigurationSchemaError(ConfigurationError):
    """The packaged configuration schema is missing or is not valid JSON Schema."""

    def __init__(
        self,
        message: str,
        schema_file: Optional[str] = None,
        schema_errors: Optional[List[str]] = None
    ) -> None:
        super().__init__(message, schema_file, [
            "resources/config_schema.json ships with the package; reinstall contextual-chunker",
        ])
        self.schema_errors = schema_errors or []
