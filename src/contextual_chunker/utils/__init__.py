"""
Utility modules for the contextual chunker: configuration, logging and
error handling.
"""

from .config import ConfigManager
from .error_handler import ErrorHandler, ErrorSummary
from .logging_config import LogFormat, LogLevel, LoggingManager, PerformanceLogger

__all__ = [
    "ConfigManager",
    "ErrorHandler",
    "ErrorSummary",
    "LogFormat",
    "LogLevel",
    "LoggingManager",
    "PerformanceLogger",
]
