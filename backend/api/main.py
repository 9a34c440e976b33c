"""FastAPI application for the Invoice Generator API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core.config import settings
from backend.core.db import open_pool, close_pool, init_db
from invoicegen_logging import InvoiceGenLogger, CorrelationMiddleware, get_logger

InvoiceGenLogger.configure("invoicegen-api", level=settings.log_level)

logger = get_logger(__name__)

from backend.api.problems import http_exception_handler
from backend.api.routes import router

APP_VERSION = "1.0.0"

app = FastAPI(
    title="Invoice Generator API",
    description="Invoices, customers and PDF/DocX export behind JWT authentication",
    version=APP_VERSION,
)

# Correlation ID propagation + HTTP request logging
app.add_middleware(CorrelationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)

app.include_router(router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info("invoicegen_api_starting", version=APP_VERSION)
    open_pool()
    init_db()
    logger.info("db_pool_ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info("invoicegen_api_shutting_down")
    close_pool()


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Invoice Generator API",
        "version": APP_VERSION,
        "status": "running",
    }
