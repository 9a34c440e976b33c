"""Aggregates every API router under a single router mounted at /api."""

from fastapi import APIRouter

from backend.api.routers import auth, customers, health, invoices

router = APIRouter()

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(customers.router)
router.include_router(invoices.router)
