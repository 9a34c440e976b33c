"""Health check endpoint."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter

from backend.api.schemas import HealthResponse
from backend.core.db import db_ok

router = APIRouter(tags=["health"])
logger = structlog.get_logger()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check service connectivity."""
    services_status = {"postgres": db_ok()}
    overall_status = "healthy" if all(services_status.values()) else "degraded"
    logger.info("health_check", status=overall_status, services=services_status)
    return HealthResponse(
        status=overall_status,
        services=services_status,
        timestamp=datetime.now(timezone.utc),
    )
