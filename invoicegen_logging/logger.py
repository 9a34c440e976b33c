"""
Structured logger for the Invoice Generator API.

- Development (ENV=development / dev / local): colourised single-entry blocks
- Anything else: one JSON object per line
"""

import json
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type, Union


correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)
log_context_var: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_GRAY = "\033[90m"
_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARN": "\033[33m",
    "ERROR": "\033[31m",
}


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogContext:
    """
    Adds fields to every log line emitted inside the ``with`` block.

        with LogContext(user_id="abc", invoice_id=7):
            logger.info("rendering")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._previous: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._previous = log_context_var.get().copy()
        log_context_var.set({**self._previous, **self.fields})
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> bool:
        log_context_var.set(self._previous)
        return False


class StructuredFormatter(logging.Formatter):
    """Renders log records as pretty text in development and JSON elsewhere."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name
        self._is_dev = os.getenv("ENV", "development") in ("development", "dev", "local")

    def _build_entry(self, record: logging.LogRecord) -> Dict[str, Any]:
        level = record.levelname.upper()
        if level == "WARNING":
            level = "WARN"

        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "service": self.service_name,
            "message": record.getMessage(),
        }

        if record.name and record.name != "root":
            entry["logger"] = record.name.split(".")[-1]

        correlation_id = correlation_id_var.get()
        if correlation_id:
            entry["correlationId"] = correlation_id

        method_name = getattr(record, "method_name", None)
        if method_name:
            entry["method"] = method_name

        context = log_context_var.get().copy()
        context.update(getattr(record, "log_context", None) or {})
        if context:
            entry["context"] = context

        duration = getattr(record, "duration", None)
        if duration is not None:
            entry["duration"] = duration

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
            }
            if self._is_dev:
                entry["error"]["stack"] = "".join(
                    traceback.format_exception(exc_type, exc_value, exc_tb)
                )

        return entry

    @staticmethod
    def _pretty(entry: Dict[str, Any]) -> str:
        level = entry.get("level", "INFO")
        color = _LEVEL_COLORS.get(level, _LEVEL_COLORS["INFO"])
        ts = entry.get("timestamp", "")
        if "T" in ts:
            ts = ts.split("T")[1][:12]

        head = [f"{_GRAY}{ts}{_RESET}", f"{color}{_BOLD}{level:<5}{_RESET}"]
        if entry.get("service"):
            head.append(f"[{entry['service']}]")
        if "logger" in entry:
            where = entry["logger"]
            if "method" in entry:
                where += f".{entry['method']}"
            head.append(f"{_BOLD}{where}{_RESET}")
        head.append(f"── {entry.get('message', '')}")
        lines = ["  ".join(head)]

        if entry.get("correlationId"):
            lines.append(f"    {_GRAY}correlationId:{_RESET} {entry['correlationId']}")
        if entry.get("duration") is not None:
            lines.append(f"    {_GRAY}duration:{_RESET} {entry['duration']}ms")
        for key, value in (entry.get("context") or {}).items():
            lines.append(f"    {_GRAY}{key}:{_RESET} {value}")

        err = entry.get("error")
        if err:
            lines.append(
                f"    {_LEVEL_COLORS['ERROR']}error: {err['type']}: {err['message']}{_RESET}"
            )
            for stack_line in err.get("stack", "").strip().splitlines():
                lines.append(f"      {_DIM}{stack_line}{_RESET}")

        return "\n".join(lines)

    def format(self, record: logging.LogRecord) -> str:
        entry = self._build_entry(record)
        if self._is_dev:
            return self._pretty(entry)
        return json.dumps(entry, default=str)


class InvoiceGenLogger:
    """
    Process-wide logger registry.

        InvoiceGenLogger.configure("invoicegen-api", level="INFO")
        logger = InvoiceGenLogger.get("InvoiceService")
    """

    _service_name: Optional[str] = None
    _root_logger: Optional[logging.Logger] = None

    _LEVELS: Dict[str, int] = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
    }

    @classmethod
    def configure(
        cls,
        service_name: str,
        level: Union[str, LogLevel] = LogLevel.INFO,
    ) -> logging.Logger:
        """Install the structured handler. Call once at application startup."""
        if isinstance(level, str):
            normalized = level.upper()
            if normalized == "WARNING":
                normalized = "WARN"
            level = LogLevel(normalized) if normalized in LogLevel.__members__ else LogLevel.INFO

        logger = logging.getLogger(service_name)
        logger.setLevel(cls._LEVELS[level.value])
        logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(service_name))
        logger.addHandler(handler)
        logger.propagate = False

        cls._service_name = service_name
        cls._root_logger = logger
        return logger

    @classmethod
    def get(cls, context: Union[Type, str]) -> "LoggerInstance":
        """Return a logger named after a class or an arbitrary string."""
        if cls._root_logger is None:
            cls.configure("invoicegen")

        name = context if isinstance(context, str) else context.__name__
        return LoggerInstance(cls._root_logger.getChild(name))


class LoggerInstance:
    """Logger bound to one module or class."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(
        self,
        level: int,
        message: str,
        method: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error: Optional[BaseException] = None,
        duration: Optional[int] = None,
    ) -> None:
        extra = {
            "method_name": method,
            "log_context": context or {},
            "duration": duration,
        }
        self._logger.log(level, message, exc_info=error, extra=extra)

    def debug(self, message: str, method: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, method, context)

    def info(
        self,
        message: str,
        method: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        duration: Optional[int] = None,
    ) -> None:
        self._log(logging.INFO, message, method, context, duration=duration)

    def warn(self, message: str, method: Optional[str] = None, context: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, method, context)

    def error(
        self,
        message: str,
        method: Optional[str] = None,
        error: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._log(logging.ERROR, message, method, context, error)

    def timed(self, operation: str, context: Optional[Dict[str, Any]] = None) -> "TimedOperation":
        """Log the start, end and elapsed milliseconds of a block."""
        return TimedOperation(self, operation, context)


class TimedOperation:
    """Context manager returned by ``LoggerInstance.timed``."""

    def __init__(self, logger: LoggerInstance, operation: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.logger = logger
        self.operation = operation
        self.context = context or {}
        self.started: float = 0

    def __enter__(self) -> "TimedOperation":
        self.started = time.perf_counter()
        self.logger.debug(f"{self.operation}_started", context=self.context)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Any,
    ) -> bool:
        duration = int((time.perf_counter() - self.started) * 1000)
        if exc_type:
            self.logger.error(
                f"{self.operation}_failed",
                error=exc_val,
                context={**self.context, "duration": duration},
            )
        else:
            self.logger.info(f"{self.operation}_completed", context=self.context, duration=duration)
        return False


class _CompatLogger:
    """
    structlog-style facade over ``LoggerInstance``.

        logger.info("event_name", key=value)
        logger.error("failed", error=exc)
    """

    def __init__(self, instance: LoggerInstance) -> None:
        self._instance = instance

    @staticmethod
    def _split(kwargs: Dict[str, Any]) -> tuple:
        raw_error = kwargs.pop("error", None)
        error = raw_error if isinstance(raw_error, BaseException) else None
        if raw_error is not None and error is None:
            kwargs["error"] = str(raw_error)
        method = kwargs.pop("method", None)
        return error, method, kwargs or None

    def debug(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._split(kwargs)
        self._instance.debug(event, method=method, context=ctx)

    def info(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._split(kwargs)
        self._instance.info(event, method=method, context=ctx)

    def warning(self, event: str, **kwargs: Any) -> None:
        _, method, ctx = self._split(kwargs)
        self._instance.warn(event, method=method, context=ctx)

    warn = warning

    def error(self, event: str, **kwargs: Any) -> None:
        error, method, ctx = self._split(kwargs)
        self._instance.error(event, method=method, error=error, context=ctx)

    def exception(self, event: str, **kwargs: Any) -> None:
        kwargs.setdefault("error", sys.exc_info()[1])
        self.error(event, **kwargs)

    def timed(self, operation: str, **context: Any) -> TimedOperation:
        return self._instance.timed(operation, context or None)


def get_logger(name: Optional[str] = None) -> _CompatLogger:
    """
    structlog-compatible logger factory.

        logger = get_logger(__name__)
        logger.info("invoice_created", invoice_id=1)
    """
    short_name = name.split(".")[-1] if name else "app"
    return _CompatLogger(InvoiceGenLogger.get(short_name))
