"""
Exceptions package for the contextual chunker.

This package contains the pipeline error taxonomy and the configuration
errors raised while loading settings.
"""

from .config_exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
    StrategyConfigurationError,
    EnvironmentVariableError,
    ConfigurationSchemaError,
)

from .system_exceptions import (
    ErrorSeverity,
    ErrorRecoveryAction,
    ErrorContext,
    ContextualChunkerError,
    StructureAnalysisError,
    ChunkingError,
    QualityAssessmentError,
    CacheError,
)

__all__ = [
    # Configuration exceptions
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    "StrategyConfigurationError",
    "EnvironmentVariableError",
    "ConfigurationSchemaError",
    # Pipeline exceptions
    "ErrorSeverity",
    "ErrorRecoveryAction",
    "ErrorContext",
    "ContextualChunkerError",
    "StructureAnalysisError",
    "ChunkingError",
    "QualityAssessmentError",
    "CacheError",
]
