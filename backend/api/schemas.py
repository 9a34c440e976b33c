"""API request/response schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from backend.core.models import Invoice, InvoiceRow, InvoiceStatus


class ProblemResponse(BaseModel):
    """Problem body returned for every handled failure."""

    title: str
    status: int
    detail: str


class InvoiceCreateRequest(BaseModel):
    """Body of POST /api/Invoices. Totals and status are always derived server-side."""

    customer_id: int
    start_date: datetime
    end_date: datetime
    rows: List[InvoiceRow] = []
    comment: Optional[str] = None
    status: Optional[InvoiceStatus] = None

    def to_invoice(self) -> Invoice:
        return Invoice(
            customer_id=self.customer_id,
            start_date=self.start_date,
            end_date=self.end_date,
            rows=self.rows,
            comment=self.comment,
        )


class CustomerCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    address: Optional[str] = None
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    phone_number: Optional[str] = None
    password: str = Field(min_length=8)


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=8)


class DeleteAccountRequest(BaseModel):
    password_confirmation: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    access_token: Optional[str] = None
    token_type: str = "bearer"


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    services: Dict[str, bool]
    timestamp: datetime
