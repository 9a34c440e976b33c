"""Re-exports from the shared invoicegen_logging package."""

from invoicegen_logging import (
    InvoiceGenLogger,
    LoggerInstance,
    LogLevel,
    LogContext,
    TimedOperation,
    get_logger,
    correlation_id_var,
    log_context_var,
    CorrelationMiddleware,
    get_correlation_id,
    CORRELATION_ID_HEADER,
)
