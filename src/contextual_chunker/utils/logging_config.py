"""
Logging configuration and management for the contextual chunker.

This module provides structured logging with an optional JSON format, file
rotation, and a performance logger whose timing context manager feeds the
per-stage ``processing_stats`` of a chunking result.
"""

import json
import logging
import logging.handlers
import time
import threading
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, Union, List


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve a level from its (case-insensitive) name, defaulting to INFO."""
        try:
            return cls[str(name).upper()]
        except KeyError:
            return cls.INFO


class LogFormat(Enum):
    """Log format types."""
    STANDARD = "standard"
    JSON = "json"
    DETAILED = "detailed"


STANDARD_RECORD_ATTRS = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'extra_data', 'taskName'
})


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter.

    Serializes the record plus any ``extra`` fields (or a pre-computed
    ``extra_data`` dict) into a single-line JSON object.
    """

    def _extract_extra_fields(self, record: logging.LogRecord) -> Dict[str, Any]:
        extra_data = {}

        if hasattr(record, 'extra_data'):
            extra_data.update(record.extra_data)

        for attr_name, attr_value in record.__dict__.items():
            if attr_name.startswith('_') or attr_name in STANDARD_RECORD_ATTRS:
                continue
            if not callable(attr_value):
                extra_data[attr_name] = attr_value

        return extra_data

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "message": record.getMessage(),
            "logger": record.name,
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        extra_data = self._extract_extra_fields(record)
        if extra_data:
            log_data.update(extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, default=str, ensure_ascii=False, separators=(',', ':'))
        except (TypeError, ValueError):
            return json.dumps({
                "timestamp": log_data["timestamp"],
                "level": log_data["level"],
                "logger": log_data["logger"],
                "message": str(record.getMessage()),
                "serialization_error": "Failed to serialize additional data"
            }, separators=(',', ':'))


class PerformanceLogger:
    """
    Performance logger with buffered metrics.

    ``time_operation`` yields a mutable timing dict whose ``duration_ms`` is
    filled in when the block exits, so callers can both log and report the
    measured duration.

    Example:
        >>> perf = PerformanceLogger()
        >>> with perf.time_operation("boundary_detection") as timing:
        ...     pass
        >>> timing["duration_ms"] >= 0
        True
    """

    def __init__(self, log_file: Optional[Path] = None, buffer_size: int = 50):
        self.log_file = log_file
        self.buffer_size = buffer_size
        self.logger = logging.getLogger("contextual_chunker.performance")
        self._buffer: deque = deque(maxlen=buffer_size)
        self._buffer_lock = threading.Lock()
        self._setup_logger()

    def _setup_logger(self) -> None:
        if self.log_file:
            handler = logging.FileHandler(self.log_file)
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            # metrics are flushed at debug level and go only to the file
            self.logger.setLevel(logging.DEBUG)
            self.logger.propagate = False

    def _flush_buffer(self) -> None:
        while self._buffer:
            log_data = self._buffer.popleft()
            self.logger.debug(log_data.get("message", "Performance metric"), extra={"extra_data": log_data})

    @contextmanager
    def time_operation(self, operation_name: str, **context):
        """Context manager for timing an operation."""
        timing: Dict[str, Any] = {"operation": operation_name, "duration_ms": 0.0}
        start_time = time.perf_counter()

        try:
            yield timing
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000.0
            timing["duration_ms"] = duration_ms

            log_data = {
                "message": f"Operation timing: {operation_name}",
                "operation": operation_name,
                "duration_ms": round(duration_ms, 3),
                **context
            }

            with self._buffer_lock:
                self._buffer.append(log_data)
                if len(self._buffer) >= self.buffer_size:
                    self._flush_buffer()

    def log_metric(self, metric_name: str, value: Union[int, float], unit: str = "", **context) -> None:
        """Log a performance metric with buffering."""
        log_data = {
            "message": f"Metric: {metric_name}",
            "metric_name": metric_name,
            "value": value,
            "unit": unit,
            **context
        }

        with self._buffer_lock:
            self._buffer.append(log_data)
            if len(self._buffer) >= self.buffer_size:
                self._flush_buffer()

    def force_flush(self) -> None:
        """Force flush of all buffered metrics."""
        with self._buffer_lock:
            self._flush_buffer()

    def pending_metrics(self) -> List[Dict[str, Any]]:
        """Return a snapshot of metrics not yet flushed."""
        with self._buffer_lock:
            return list(self._buffer)


class LoggingManager:
    """
    Root logging setup for library and CLI use.
    """

    def __init__(
        self,
        log_level: LogLevel = LogLevel.INFO,
        log_format: LogFormat = LogFormat.STANDARD,
        log_file: Optional[Path] = None,
        enable_console: bool = True,
        enable_rotation: bool = False,
        max_file_size: str = "10MB",
        backup_count: int = 5
    ):
        self.log_level = log_level
        self.log_format = log_format
        self.log_file = log_file
        self.enable_console = enable_console
        self.enable_rotation = enable_rotation
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self._loggers: Dict[str, logging.Logger] = {}
        self._setup_root_logger()

    @classmethod
    def from_config(cls, logging_config: Dict[str, Any], enable_console: bool = True) -> "LoggingManager":
        """Build a manager from the ``logging`` section of the configuration."""
        log_file = logging_config.get("file")
        return cls(
            log_level=LogLevel.from_name(logging_config.get("level", "INFO")),
            log_format=LogFormat(logging_config.get("format", LogFormat.STANDARD.value)),
            log_file=Path(log_file) if log_file else None,
            enable_console=enable_console,
        )

    def _setup_root_logger(self) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(self.log_level.value)
        root_logger.handlers.clear()

        formatters = self._create_formatters()

        if self.enable_console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(self.log_level.value)
            console_handler.setFormatter(formatters[self.log_format])
            root_logger.addHandler(console_handler)

        if self.log_file:
            file_handler = self._create_file_handler()
            file_handler.setLevel(self.log_level.value)
            file_handler.setFormatter(formatters[self.log_format])
            root_logger.addHandler(file_handler)

    def _create_formatters(self) -> Dict[LogFormat, logging.Formatter]:
        return {
            LogFormat.STANDARD: logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            ),
            LogFormat.JSON: JSONFormatter(),
            LogFormat.DETAILED: logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s'
            )
        }

    def _create_file_handler(self) -> logging.Handler:
        if self.enable_rotation:
            if self.max_file_size.endswith('KB'):
                max_bytes = int(self.max_file_size[:-2]) * 1024
            elif self.max_file_size.endswith('MB'):
                max_bytes = int(self.max_file_size[:-2]) * 1024 * 1024
            elif self.max_file_size.endswith('GB'):
                max_bytes = int(self.max_file_size[:-2]) * 1024 * 1024 * 1024
            else:
                max_bytes = int(self.max_file_size)

            return logging.handlers.RotatingFileHandler(
                filename=self.log_file,
                maxBytes=max_bytes,
                backupCount=self.backup_count
            )
        return logging.FileHandler(self.log_file)

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger instance."""
        if name not in self._loggers:
            logger = logging.getLogger(name)
            logger.setLevel(self.log_level.value)
            self._loggers[name] = logger

        return self._loggers[name]
