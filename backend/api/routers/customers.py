"""Customer endpoints: the billed parties referenced by invoices."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from backend.api.dependencies import get_customer_store, require_store
from backend.api.schemas import CustomerCreateRequest
from backend.auth.dependencies import get_current_user
from backend.core.logging import get_logger
from backend.core.models import Customer, UserInfo
from backend.storage.customer_store import CustomerStore

router = APIRouter(prefix="/Customers", tags=["customers"], dependencies=[Depends(require_store)])
logger = get_logger(__name__)


@router.post("", response_model=Customer, status_code=201)
async def create_customer(
    body: CustomerCreateRequest,
    current_user: UserInfo = Depends(get_current_user),
    store: CustomerStore = Depends(get_customer_store),
):
    """Create a customer owned by the caller."""
    customer = store.create(Customer(user_id=current_user.id, **body.model_dump()))
    logger.info("customer_created", customer_id=customer.id, user_id=current_user.id)
    return customer


@router.get("", response_model=List[Customer])
async def list_customers(
    current_user: UserInfo = Depends(get_current_user),
    store: CustomerStore = Depends(get_customer_store),
):
    """List the caller's customers, newest first."""
    return store.list(current_user.id)


@router.get("/{customer_id}", response_model=Customer)
async def get_customer(
    customer_id: int,
    current_user: UserInfo = Depends(get_current_user),
    store: CustomerStore = Depends(get_customer_store),
):
    customer = store.get(customer_id, current_user.id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer
