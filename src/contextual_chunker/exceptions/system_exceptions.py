"""
System-wide exception classes for the contextual chunker.

This module defines the error taxonomy used by the chunking pipeline, with
severity levels, context preservation and recovery action suggestions.

Every pipeline stage converts its failures into one of these classes and the
top-level chunker turns them into a degraded-but-valid result, so none of
them escape ``ContextAwareChunker.chunk_content``.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Union


class ErrorSeverity(Enum):
    """Error severity levels with ordering support."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __lt__(self, other):
        """Enable ordering of severity levels."""
        if not isinstance(other, ErrorSeverity):
            return NotImplemented

        order = {
            ErrorSeverity.LOW: 1,
            ErrorSeverity.MEDIUM: 2,
            ErrorSeverity.HIGH: 3,
            ErrorSeverity.CRITICAL: 4
        }
        return order[self] < order[other]

    def __le__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self == other or self < other

    def __gt__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return other < self

    def __ge__(self, other):
        if not isinstance(other, ErrorSeverity):
            return NotImplemented
        return self == other or other < self


class ErrorRecoveryAction(Enum):
    """Recovery action suggestions for different error types."""
    CHECK_CONFIGURATION = "Check configuration file for missing or invalid settings"
    CHECK_INPUT = "Check that the input document is valid UTF-8 text"
    CHECK_PATTERNS = "Verify custom heading or boundary patterns are valid regular expressions"
    USE_SIMPLE_STRATEGY = "Retry with the 'simple' chunking strategy"
    USE_FALLBACK_CHUNKING = "Fall back to fixed-size window chunking"
    USE_DEFAULT_SCORE = "Use the default quality score for the affected chunk"
    CLEAR_CACHE = "Clear the result caches and retry"
    CONTACT_SUPPORT = "Contact system administrator or support team"

    def __str__(self):
        return self.value


class ErrorContext:
    """
    Error context information with selective metadata capture.

    Records the pipeline operation that failed plus optional document and
    strategy identifiers.
    """
    __slots__ = ('operation', 'document_id', 'strategy', '_additional_data', '_severity_threshold')

    def __init__(
        self,
        operation: str,
        document_id: Optional[str] = None,
        strategy: Optional[str] = None,
        _additional_data: Optional[Dict[str, Any]] = None,
        _severity_threshold: ErrorSeverity = ErrorSeverity.MEDIUM
    ):
        self.operation = operation
        self.document_id = document_id
        self.strategy = strategy
        self._additional_data = _additional_data
        self._severity_threshold = _severity_threshold

        if self._additional_data is None:
            self._additional_data = {}

    @property
    def additional_data(self) -> Dict[str, Any]:
        """Get additional data dictionary."""
        if self._additional_data is None:
            self._additional_data = {}
        return self._additional_data

    @additional_data.setter
    def additional_data(self, value: Dict[str, Any]):
        """Set additional data dictionary."""
        self._additional_data = value or {}

    def add_data(self, key: str, value: Any, min_severity: ErrorSeverity = ErrorSeverity.LOW) -> None:
        """
        Add data to context only if severity threshold is met.

        Low-severity errors keep a lean context.
        """
        if min_severity >= self._severity_threshold:
            if self._additional_data is None:
                self._additional_data = {}
            self._additional_data[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary representation."""
        result = {
            "operation": self.operation,
        }

        if self.document_id is not None:
            result["document_id"] = self.document_id
        if self.strategy is not None:
            result["strategy"] = self.strategy
        if self._additional_data:
            result["additional_data"] = self._additional_data

        return result


class ContextualChunkerError(Exception):
    """
    Base exception class for the contextual chunker.

    Uses __slots__ and lazy evaluation for the timestamp and error id.
    """
    __slots__ = (
        '_message', '_severity', '_context', '_suggested_actions',
        '_timestamp', '_error_id', '_original_exception'
    )

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Union[ErrorContext, Dict[str, Any]]] = None,
        suggested_actions: Optional[List[Union[ErrorRecoveryAction, str]]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self._message = message
        self._severity = severity
        self._original_exception = original_exception
        self._context = self._coerce_context(context)
        self._context._severity_threshold = severity
        self._suggested_actions = self._process_suggested_actions(suggested_actions)
        self._timestamp = None
        self._error_id = None

    @staticmethod
    def _coerce_context(context: Optional[Union[ErrorContext, Dict[str, Any]]]) -> ErrorContext:
        if isinstance(context, dict):
            return ErrorContext(
                operation=context.get('operation', 'unknown'),
                document_id=context.get('document_id'),
                strategy=context.get('strategy'),
                _additional_data=context.get('additional_data', {})
            )
        if isinstance(context, ErrorContext):
            return context
        if context is None:
            return ErrorContext(operation="unknown")
        raise TypeError(f"Context must be ErrorContext or dict, got {type(context)}")

    @property
    def message(self) -> str:
        """Get error message."""
        return self._message

    @property
    def severity(self) -> ErrorSeverity:
        """Get error severity."""
        return self._severity

    @property
    def context(self) -> ErrorContext:
        """Get error context."""
        return self._context

    @context.setter
    def context(self, value: Optional[Union[ErrorContext, Dict[str, Any]]]):
        """Set error context."""
        self._context = self._coerce_context(value)

    @property
    def suggested_actions(self) -> List[ErrorRecoveryAction]:
        """Get suggested recovery actions."""
        return self._suggested_actions

    @property
    def original_exception(self) -> Optional[Exception]:
        """Get original exception if available."""
        return self._original_exception

    @property
    def timestamp(self) -> datetime:
        """Get error timestamp (lazy evaluation)."""
        if self._timestamp is None:
            self._timestamp = datetime.now()
        return self._timestamp

    @property
    def error_id(self) -> str:
        """Get unique error ID (lazy evaluation)."""
        if self._error_id is None:
            self._error_id = str(uuid.uuid4())
        return self._error_id

    def _process_suggested_actions(
        self,
        actions: Optional[List[Union[ErrorRecoveryAction, str]]]
    ) -> List[ErrorRecoveryAction]:
        """Process and convert suggested actions."""
        if not actions:
            return []

        processed_actions = []
        for action in actions:
            if isinstance(action, ErrorRecoveryAction):
                processed_actions.append(action)
            elif isinstance(action, str):
                for recovery_action in ErrorRecoveryAction:
                    if action.lower() in recovery_action.value.lower():
                        processed_actions.append(recovery_action)
                        break
                else:
                    processed_actions.append(ErrorRecoveryAction.CONTACT_SUPPORT)

        return processed_actions

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "error_id": self.error_id,
            "error_type": type(self).__name__,
            "message": self._message,
            "severity": self._severity.value,
            "timestamp": self.timestamp.isoformat(),
            "context": self._context.to_dict(),
            "suggested_actions": [str(action) for action in self._suggested_actions]
        }

        if self._original_exception:
            result["original_exception"] = str(self._original_exception)

        return result

    def __str__(self) -> str:
        """String representation of the error."""
        return self._message


class StructureAnalysisError(ContextualChunkerError):
    """Raised when heading/section/content pattern analysis fails."""
    __slots__ = ('_pattern_source',)

    def __init__(
        self,
        message: str,
        pattern_source: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        **kwargs
    ):
        default_actions = [
            ErrorRecoveryAction.CHECK_PATTERNS,
            ErrorRecoveryAction.USE_SIMPLE_STRATEGY,
        ]

        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)

        self._pattern_source = pattern_source

    @property
    def pattern_source(self) -> Optional[str]:
        """Get the name of the pattern being applied when analysis failed."""
        return self._pattern_source


class ChunkingError(ContextualChunkerError):
    """Raised when chunk generation, optimization or overlap injection fails."""
    __slots__ = ('_stage', '_strategy_name')

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        strategy_name: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        **kwargs
    ):
        default_actions = [
            ErrorRecoveryAction.USE_FALLBACK_CHUNKING,
            ErrorRecoveryAction.CHECK_INPUT,
        ]

        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)

        self._stage = stage
        self._strategy_name = strategy_name

    @property
    def stage(self) -> Optional[str]:
        """Get the pipeline stage that failed."""
        return self._stage

    @property
    def strategy_name(self) -> Optional[str]:
        """Get the strategy active when the failure happened."""
        return self._strategy_name


class QualityAssessmentError(ContextualChunkerError):
    """Raised when a chunk cannot be scored."""
    __slots__ = ('_chunk_index',)

    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        severity: ErrorSeverity = ErrorSeverity.LOW,
        **kwargs
    ):
        default_actions = [ErrorRecoveryAction.USE_DEFAULT_SCORE]

        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)

        self._chunk_index = chunk_index

    @property
    def chunk_index(self) -> Optional[int]:
        """Get the index of the chunk that failed scoring."""
        return self._chunk_index


class CacheError(ContextualChunkerError):
    """Raised when a cache key cannot be built or a cache entry cannot be stored."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.LOW, **kwargs):
        default_actions = [ErrorRecoveryAction.CLEAR_CACHE]

        suggested_actions = kwargs.pop('suggested_actions', default_actions)
        super().__init__(message, severity, suggested_actions=suggested_actions, **kwargs)
