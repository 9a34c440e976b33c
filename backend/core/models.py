from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator


class InvoiceStatus(str, Enum):
    CREATED = "Created"
    SENT = "Sent"
    RECEIVED = "Received"
    PAID = "Paid"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"
    ARCHIVED = "Archived"


class OrderBy(str, Enum):
    """Sort keys accepted by the invoice listing."""

    START_DATE_ASC = "start_date_asc"
    START_DATE_DESC = "start_date_desc"
    END_DATE_ASC = "end_date_asc"
    END_DATE_DESC = "end_date_desc"
    TOTAL_SUM_ASC = "total_sum_asc"
    TOTAL_SUM_DESC = "total_sum_desc"
    CREATED_AT_ASC = "created_at_asc"
    CREATED_AT_DESC = "created_at_desc"
    STATUS_ASC = "status_asc"
    STATUS_DESC = "status_desc"

    @property
    def column(self) -> str:
        return self.value.rsplit("_", 1)[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith("_desc")


class InvoiceRow(BaseModel):
    service: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    quantity: Decimal = Field(gt=0)
    sum: Decimal = Decimal(0)

    @model_validator(mode="after")
    def _compute_sum(self) -> "InvoiceRow":
        """The line sum is always derived; whatever the caller sent is discarded."""
        self.sum = self.unit_price * self.quantity
        return self


def compute_total(rows: List[InvoiceRow]) -> Decimal:
    return sum((row.unit_price * row.quantity for row in rows), Decimal(0))


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Invoice(BaseModel):
    id: Optional[int] = None
    user_id: Optional[str] = None
    customer_id: int
    start_date: datetime
    end_date: datetime
    rows: List[InvoiceRow] = []
    total_sum: Decimal = Decimal(0)
    comment: Optional[str] = None
    status: InvoiceStatus = InvoiceStatus.CREATED
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    @field_validator("start_date", "end_date", "created_at", "updated_at", "deleted_at")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_period(self) -> "Invoice":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def with_computed_total(self) -> "Invoice":
        return self.model_copy(update={"total_sum": compute_total(self.rows)})


class Customer(BaseModel):
    id: Optional[int] = None
    user_id: Optional[str] = None
    name: str
    address: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class UserInfo(BaseModel):
    """Identity of the authenticated caller, as resolved from the bearer token."""

    id: str
    name: str
    email: str
    address: Optional[str] = None
    phone_number: Optional[str] = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_count: int
    total_pages: int


class Address(BaseModel):
    name: str
    address: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None


class InvoiceDocumentModel(BaseModel):
    """Everything the document renderers need to lay out one invoice."""

    invoice_number: int
    issue_date: date
    due_date: date
    seller_address: Address
    customer_address: Address
    rows: List[InvoiceRow]
    total_sum: Decimal
    comment: Optional[str] = None
    currency_symbol: str = "$"
