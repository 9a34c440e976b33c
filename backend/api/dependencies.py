"""Request-scoped dependencies shared by the routers."""

from fastapi import Depends, HTTPException, status

from backend.auth.dependencies import get_current_user
from backend.core.db import db_ok
from backend.core.models import UserInfo
from backend.services.invoice_service import InvoiceService
from backend.storage.customer_store import CustomerStore


def require_store() -> None:
    """Refuse the request up front when Postgres cannot be reached."""
    if not db_ok():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The invoice store is unavailable.",
        )


def get_invoice_service(current_user: UserInfo = Depends(get_current_user)) -> InvoiceService:
    service = InvoiceService()
    service.set_user_info(current_user)
    return service


def get_customer_store() -> CustomerStore:
    return CustomerStore()
