"""
Structured Logging for the provisioning controller

Provides structured JSON logging with correlation IDs, region context management,
and configurable formatters and handlers for different output destinations.
"""

import json
import sys
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union
from contextvars import ContextVar

ROOT_LOGGER_NAME = "rama_provision"

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
region_name_var: ContextVar[Optional[str]] = ContextVar('region_name', default=None)
cycle_id_var: ContextVar[Optional[str]] = ContextVar('cycle_id', default=None)


class LogLevel(Enum):
    """Log levels for the provisioning logging system"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4
}


class LogFormatter(ABC):
    """Abstract base class for log formatters"""

    @abstractmethod
    def format(self, record: Dict[str, Any]) -> str:
        """Format a log record into a string"""
        pass


class JSONLogFormatter(LogFormatter):
    """JSON formatter for structured logging"""

    def format(self, record: Dict[str, Any]) -> str:
        return json.dumps(record, default=str, ensure_ascii=False)


class HumanReadableFormatter(LogFormatter):
    """Human-readable formatter for development/debugging"""

    def format(self, record: Dict[str, Any]) -> str:
        timestamp = record.get('timestamp', '')
        level = record.get('level', '')
        message = record.get('message', '')

        base_msg = f"[{timestamp}] {level}: {message}"

        if record.get('region_name'):
            base_msg += f" [region={record['region_name']}]"
        if record.get('correlation_id'):
            base_msg += f" [correlation_id={record['correlation_id']}]"

        if record.get('extra'):
            extra_str = ', '.join(f"{k}={v}" for k, v in record['extra'].items())
            base_msg += f" [{extra_str}]"

        return base_msg


class LogHandler(ABC):
    """Abstract base class for log handlers"""

    def __init__(self, formatter: LogFormatter):
        self.formatter = formatter

    @abstractmethod
    def emit(self, record: Dict[str, Any]) -> None:
        """Emit a log record"""
        pass


class ConsoleLogHandler(LogHandler):
    """Console log handler that writes to stdout/stderr"""

    def __init__(self, formatter: LogFormatter, stream: TextIO = sys.stdout):
        super().__init__(formatter)
        self.stream = stream

    def emit(self, record: Dict[str, Any]) -> None:
        formatted_message = self.formatter.format(record)
        self.stream.write(formatted_message + '\n')
        self.stream.flush()


class FileLogHandler(LogHandler):
    """File log handler that appends to a file"""

    def __init__(self, formatter: LogFormatter, file_path: Union[str, Path]):
        super().__init__(formatter)
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: Dict[str, Any]) -> None:
        formatted_message = self.formatter.format(record)
        with open(self.file_path, 'a', encoding='utf-8') as f:
            f.write(formatted_message + '\n')


class MemoryLogHandler(LogHandler):
    """Keeps emitted records in a list. Used by tests and local debugging."""

    def __init__(self, formatter: Optional[LogFormatter] = None):
        super().__init__(formatter or JSONLogFormatter())
        self.records: list[Dict[str, Any]] = []

    def emit(self, record: Dict[str, Any]) -> None:
        self.records.append(record)

    def messages(self, level: Optional[LogLevel] = None) -> list[str]:
        return [
            r['message'] for r in self.records
            if level is None or r['level'] == level.value
        ]


class ProvisionLogger:
    """
    Structured logger with correlation ID support and region context management.

    Records are delivered to the logger's own handlers and then, when
    ``propagate`` is set, to the handlers of its dotted parents
    (``rama_provision.policy.rama`` -> ``rama_provision.policy`` -> ``rama_provision``).
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        self.name = name
        self.level = level
        self.handlers: list[LogHandler] = []
        self.propagate = True

    def add_handler(self, handler: LogHandler) -> None:
        self.handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    def set_level(self, level: LogLevel) -> None:
        self.level = level

    def _should_log(self, level: LogLevel) -> bool:
        return _LEVEL_ORDER[level] >= _LEVEL_ORDER[self.level]

    def _create_log_record(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level.value,
            'logger': self.name,
            'message': message,
            'correlation_id': correlation_id_var.get(),
            'region_name': region_name_var.get(),
            'cycle_id': cycle_id_var.get(),
        }

        if extra:
            record['extra'] = extra

        # Remove None values to keep logs clean
        return {k: v for k, v in record.items() if v is not None}

    def _parent(self) -> Optional["ProvisionLogger"]:
        if '.' not in self.name:
            return None
        parent_name = self.name.rsplit('.', 1)[0]
        return get_logger(parent_name)

    def _dispatch(self, record: Dict[str, Any]) -> None:
        for handler in self.handlers:
            try:
                handler.emit(record)
            except Exception as e:
                # Fallback to stderr if handler fails
                sys.stderr.write(f"Logging handler failed: {e}\n")

        if self.propagate:
            parent = self._parent()
            if parent is not None and parent._should_log(LogLevel(record['level'])):
                parent._dispatch(record)

    def _log(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        if not self._should_log(level):
            return
        self._dispatch(self._create_log_record(level, message, extra))

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(LogLevel.WARNING, message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: Optional[Exception] = None) -> None:
        """Log error message with optional exception info"""
        if exc_info:
            extra = dict(extra or {})
            extra['exception'] = _describe_exception(exc_info)
        self._log(LogLevel.ERROR, message, extra)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: Optional[Exception] = None) -> None:
        if exc_info:
            extra = dict(extra or {})
            extra['exception'] = _describe_exception(exc_info)
        self._log(LogLevel.CRITICAL, message, extra)

    @contextmanager
    def correlation_context(self, correlation_id: Optional[str] = None):
        """Context manager for correlation ID tracking"""
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        token = correlation_id_var.set(correlation_id)
        try:
            yield correlation_id
        finally:
            correlation_id_var.reset(token)

    @contextmanager
    def region_context(self, region_name: str, cycle_id: Optional[str] = None):
        """Context manager tagging every record with the region (and cycle) being controlled"""
        region_token = region_name_var.set(region_name)
        cycle_token = None

        if cycle_id:
            cycle_token = cycle_id_var.set(cycle_id)

        try:
            yield region_name
        finally:
            region_name_var.reset(region_token)
            if cycle_token:
                cycle_id_var.reset(cycle_token)


def _describe_exception(exc: Exception) -> Dict[str, Any]:
    description = {
        'type': type(exc).__name__,
        'message': str(exc),
        'module': type(exc).__module__
    }
    error_code = getattr(exc, 'error_code', None)
    if error_code:
        description['error_code'] = error_code
    return description


# Global logger registry
_loggers: Dict[str, ProvisionLogger] = {}


def get_logger(name: str, level: LogLevel = LogLevel.INFO) -> ProvisionLogger:
    """Get or create a logger instance"""
    if name not in _loggers:
        _loggers[name] = ProvisionLogger(name, level)
    return _loggers[name]


def configure_default_logging(
    level: LogLevel = LogLevel.INFO,
    use_json: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    stream: TextIO = sys.stdout
) -> ProvisionLogger:
    """Configure the root provisioning logger. Replaces previously installed handlers."""

    formatter = JSONLogFormatter() if use_json else HumanReadableFormatter()

    root_logger = get_logger(ROOT_LOGGER_NAME)
    root_logger.set_level(level)
    root_logger.handlers = [ConsoleLogHandler(formatter, stream)]

    if log_file:
        root_logger.add_handler(FileLogHandler(formatter, log_file))

    return root_logger


def reset_logging() -> None:
    """Drop every registered logger. Used between tests."""
    _loggers.clear()


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context"""
    return correlation_id_var.get()


def get_region_name() -> Optional[str]:
    """Get the region currently being controlled, if any"""
    return region_name_var.get()
