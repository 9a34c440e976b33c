"""
Starlette middleware propagating a correlation ID and logging each request.
"""

import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logger import InvoiceGenLogger, correlation_id_var, log_context_var

CORRELATION_ID_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID of the request being handled, if any."""
    return correlation_id_var.get()


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Per request:
    1. Reuse the caller's ``X-Correlation-ID`` or mint a new one
    2. Expose it through a context variable so every log line carries it
    3. Log completion with status code and duration
    4. Echo the ID back in the response headers
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        logger = InvoiceGenLogger.get("HTTP")
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or f"req-{uuid.uuid4()}"
        correlation_id_var.set(correlation_id)
        log_context_var.set({})

        request_info = {"method": request.method, "path": request.url.path}
        logger.debug("request_received", method="dispatch", context=request_info)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method="dispatch",
                error=e,
                context={**request_info, "duration": int((time.perf_counter() - started) * 1000)},
            )
            raise
        finally:
            log_context_var.set({})

        duration = int((time.perf_counter() - started) * 1000)
        log_fn = logger.warn if response.status_code >= 400 else logger.info
        log_fn(
            "request_completed",
            method="dispatch",
            context={**request_info, "statusCode": response.status_code, "duration": duration},
        )
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        correlation_id_var.set(None)
        return response
