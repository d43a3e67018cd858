"""
Error handling and tracking for the chunking pipeline.

The chunker routes every caught stage failure through an ``ErrorHandler``,
which wraps it into a ``ContextualChunkerError``, keeps bounded statistics
and logs it at a level matching its severity.
"""

import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Union

from ..exceptions.system_exceptions import (
    ContextualChunkerError,
    ErrorSeverity,
    ErrorContext,
)


@dataclass
class ErrorSummary:
    """Summary of error statistics."""
    total_errors: int
    error_counts: Dict[str, int]
    severity_counts: Dict[str, int]
    recent_errors: List[ContextualChunkerError]
    error_rate: float  # errors per minute over the last hour


class ErrorHandler:
    """Tracks and logs pipeline errors."""

    def __init__(self, history_size: int = 1000, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

        self.error_history: deque = deque(maxlen=history_size)
        self.error_counts: Dict[str, int] = defaultdict(int)
        self.severity_counts: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()

    def handle_error(
        self,
        error: Union[Exception, ContextualChunkerError],
        context: Optional[ErrorContext] = None
    ) -> ContextualChunkerError:
        """Wrap, track and log an error; returns the wrapped error."""
        if not isinstance(error, ContextualChunkerError):
            handled_error = ContextualChunkerError(
                message=str(error) or type(error).__name__,
                context=context or ErrorContext(operation="unknown"),
                original_exception=error
            )
        else:
            handled_error = error
            if context:
                handled_error.context = context

        self._track_error(handled_error)
        self._log_error(handled_error)

        return handled_error

    def _track_error(self, error: ContextualChunkerError) -> None:
        error.timestamp  # pin the timestamp to handling time
        with self._lock:
            self.error_history.append(error)
            self.error_counts[type(error).__name__] += 1
            self.severity_counts[error.severity.value] += 1

    def _log_error(self, error: ContextualChunkerError) -> None:
        """Log error with appropriate level and context."""
        # 'message' is reserved on LogRecord
        log_data = {
            "error_id": error.error_id,
            "error_type": type(error).__name__,
            "severity": error.severity.value,
            "error_message": error.message,
            "error_context": error.context.to_dict() if error.context else {},
            "suggested_actions": [str(action) for action in error.suggested_actions],
        }

        message_parts = [error.message]
        if error.context and error.context.operation != "unknown":
            message_parts.append(f"Operation: {error.context.operation}")
        if error.context and error.context.strategy:
            message_parts.append(f"Strategy: {error.context.strategy}")

        detailed_message = " | ".join(message_parts)

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(f"Critical error: {detailed_message}", extra=log_data)
        elif error.severity == ErrorSeverity.HIGH:
            self.logger.error(f"High severity error: {detailed_message}", extra=log_data)
        elif error.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(f"Medium severity error: {detailed_message}", extra=log_data)
        else:
            self.logger.info(f"Low severity error: {detailed_message}", extra=log_data)

    def get_error_summary(self) -> ErrorSummary:
        """Get summary of error statistics."""
        # workers may append while a summary is built
        with self._lock:
            history = list(self.error_history)
            error_counts = dict(self.error_counts)
            severity_counts = dict(self.severity_counts)

        now = datetime.now()
        recent_errors = [
            error for error in history
            if (now - error.timestamp).total_seconds() < 3600
        ]
        error_rate = len(recent_errors) / 60.0 if recent_errors else 0.0

        return ErrorSummary(
            total_errors=len(history),
            error_counts=error_counts,
            severity_counts=severity_counts,
            recent_errors=history,
            error_rate=error_rate
        )

    def get_recent_errors(self, limit: int = 10) -> List[ContextualChunkerError]:
        """Get most recent errors."""
        with self._lock:
            return list(self.error_history)[-limit:]

    def clear(self) -> None:
        """Reset tracked errors."""
        with self._lock:
            self.error_history.clear()
            self.error_counts.clear()
            self.severity_counts.clear()
