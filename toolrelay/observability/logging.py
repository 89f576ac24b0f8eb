"""
toolrelay - Structured JSON Logging

Structured logging with automatic invocation context injection.

Features:
- JSON-formatted logs for easy parsing
- Automatic run/invocation context injection via contextvars
- Log level and format configurable via environment
- Sensitive data redaction

Usage:
    from toolrelay.observability.logging import setup_logging, get_logger

    setup_logging(level="INFO")

    logger = get_logger(__name__)
    logger.info("Tool called", tool_name="search")

Output:
    {"timestamp": "2026-01-15T10:30:00+00:00", "level": "INFO",
     "logger": "toolrelay.tools.orchestrator", "message": "Tool called",
     "tool_name": "search", "run_id": "run_ab12cd34"}
"""

import sys
import json
import logging
import time
from typing import Optional, Dict, Any, Union
from datetime import datetime, timezone
from dataclasses import dataclass, field
from contextvars import ContextVar

from ..config import get_settings

_log_context: ContextVar[Optional["LogContext"]] = ContextVar("toolrelay_log_context", default=None)


@dataclass
class LogContext:
    """
    Logging context with correlation IDs.

    Task-local through contextvars: each asyncio task started inside a run
    sees a copy of the context current at creation time.
    """
    run_id: str = ""
    invocation_id: str = ""
    tool_name: str = ""
    server_name: str = ""
    provider: str = ""
    model: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def get_current(cls) -> Optional["LogContext"]:
        """Get current log context."""
        return _log_context.get()

    @classmethod
    def set_current(cls, ctx: Optional["LogContext"]):
        """Set current log context and return the reset token."""
        return _log_context.set(ctx)

    @classmethod
    def reset(cls, token) -> None:
        """Restore the context that was current before ``set_current``."""
        _log_context.reset(token)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ("run_id", "invocation_id", "tool_name", "server_name", "provider", "model"):
            value = getattr(self, key)
            if value:
                result[key] = value
        result.update(self.extra)
        return result


_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with automatic context injection.

    Output format:
    {
        "timestamp": "2026-01-15T10:30:00.123456+00:00",
        "level": "INFO",
        "logger": "module.name",
        "message": "Log message",
        "run_id": "run_abc123",
        ... additional fields
    }
    """

    SENSITIVE_FIELDS = {
        "password", "secret", "token", "api_key", "apikey",
        "authorization", "credential", "private_key",
    }

    def __init__(
        self,
        include_timestamp: bool = True,
        include_location: bool = False,
        redact_sensitive: bool = True,
    ):
        super().__init__()
        self.include_timestamp = include_timestamp
        self.include_location = include_location
        self.redact_sensitive = redact_sensitive

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.getMessage()

        if self.include_location:
            log_data["location"] = f"{record.filename}:{record.lineno}"

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        ctx = LogContext.get_current()
        if ctx:
            log_data.update(ctx.to_dict())

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if self.redact_sensitive and self._is_sensitive(key):
                value = "[REDACTED]"
            log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)

    def _is_sensitive(self, field_name: str) -> bool:
        """Check if field name indicates sensitive data."""
        field_lower = field_name.lower()
        return any(sensitive in field_lower for sensitive in self.SENSITIVE_FIELDS)


class StructuredLogger:
    """
    Structured logger wrapper.

    Keyword arguments other than the stdlib ones become structured fields.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, *args, **kwargs):
        extra = dict(kwargs.pop("extra", {}))

        for key in list(kwargs):
            if key not in {"exc_info", "stack_info", "stacklevel"}:
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        """Log exception with traceback."""
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, *args, **kwargs)


_logging_configured = False


def setup_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = True,
    include_location: bool = False,
    redact_sensitive: bool = True,
) -> None:
    """
    Setup structured logging on the ``toolrelay`` logger hierarchy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON formatter (True) or standard formatter (False)
        include_location: Include filename:lineno in logs
        redact_sensitive: Redact sensitive fields like tokens
    """
    global _logging_configured

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    package_logger = logging.getLogger("toolrelay")
    package_logger.setLevel(level)

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_output:
        formatter: logging.Formatter = JSONFormatter(
            include_location=include_location,
            redact_sensitive=redact_sensitive,
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    package_logger.addHandler(handler)

    _logging_configured = True


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Configures logging from settings on first use.
    """
    if not _logging_configured:
        settings = get_settings()
        setup_logging(level=settings.log_level, json_output=settings.json_logs)

    return StructuredLogger(logging.getLogger(name))


class TimedOperation:
    """
    Context manager for timing operations.

    Usage:
        async with TimedOperation("tool_call", logger, extra={"tool_name": name}):
            result = await execute(invocation)
        # Logs: "tool_call completed" with duration_ms

    Failures are logged as "<operation> failed" at the same level; the
    caller owns reporting the exception itself.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        log_level: int = logging.DEBUG,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.logger = logger or get_logger("toolrelay.timed_operation")
        self.log_level = log_level
        self.extra = extra or {}
        self.start_time: Optional[float] = None
        self.duration_ms: Optional[float] = None

    @property
    def duration_seconds(self) -> float:
        return (self.duration_ms or 0.0) / 1000

    def __enter__(self) -> "TimedOperation":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        log_extra = {
            "operation": self.operation,
            "duration_ms": round(self.duration_ms, 2),
            **self.extra,
        }

        if exc_type:
            log_extra["error"] = str(exc_val)
            self.logger._log(self.log_level, f"{self.operation} failed", extra=log_extra)
        else:
            self.logger._log(self.log_level, f"{self.operation} completed", extra=log_extra)

    async def __aenter__(self) -> "TimedOperation":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)
