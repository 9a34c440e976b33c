"""
invoicegen_logging: structured logging for the Invoice Generator API.

Provides:
- InvoiceGenLogger: configure once at startup, then hand out named loggers
- get_logger(): structlog-style loggers (``logger.info("event", key=value)``)
- CorrelationMiddleware: FastAPI middleware stamping every request with an ID
- LogContext: context manager adding fields to every log line in a block

Usage, application startup:
    from invoicegen_logging import InvoiceGenLogger, CorrelationMiddleware
    InvoiceGenLogger.configure("invoicegen-api", level=settings.log_level)
    app.add_middleware(CorrelationMiddleware)

Usage, any module:
    from invoicegen_logging import get_logger
    logger = get_logger(__name__)
    logger.info("invoice_created", invoice_id=42)
"""

from .logger import (
    InvoiceGenLogger,
    LoggerInstance,
    LogLevel,
    LogContext,
    TimedOperation,
    get_logger,
    correlation_id_var,
    log_context_var,
)
from .middleware import (
    CorrelationMiddleware,
    get_correlation_id,
    CORRELATION_ID_HEADER,
)

__all__ = [
    "InvoiceGenLogger",
    "LoggerInstance",
    "LogLevel",
    "LogContext",
    "TimedOperation",
    "get_logger",
    "correlation_id_var",
    "log_context_var",
    "CorrelationMiddleware",
    "get_correlation_id",
    "CORRELATION_ID_HEADER",
]
