"""Invoice lifecycle: creation, partial edits, status changes, soft deletion and export."""

import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from backend.core.config import settings
from backend.core.exceptions import (
    CustomerNotFoundError,
    InvoiceNotFoundError,
    UserInfoMissingError,
)
from backend.core.logging import get_logger
from backend.core.models import (
    Address,
    Invoice,
    InvoiceDocumentModel,
    InvoiceStatus,
    OrderBy,
    Page,
    UserInfo,
    as_utc,
)
from backend.documents import render_invoice_docx, render_invoice_pdf
from backend.storage.customer_store import CustomerStore
from backend.storage.invoice_store import InvoiceStore

logger = get_logger(__name__)

Renderer = Callable[[InvoiceDocumentModel], bytes]


class InvoiceService:
    """
    Orchestrates the invoice store, the customer store and the document renderers.

    A service instance serves one request: bind the caller with
    ``set_user_info`` first; every operation is then scoped to that user.
    """

    def __init__(
        self,
        store: Optional[InvoiceStore] = None,
        customer_store: Optional[CustomerStore] = None,
        pdf_renderer: Renderer = render_invoice_pdf,
        docx_renderer: Renderer = render_invoice_docx,
    ):
        self.store = store or InvoiceStore()
        self.customer_store = customer_store or CustomerStore()
        self.pdf_renderer = pdf_renderer
        self.docx_renderer = docx_renderer
        self._user_info: Optional[UserInfo] = None

    def set_user_info(self, user_info: UserInfo) -> None:
        self._user_info = user_info

    @property
    def user(self) -> UserInfo:
        if self._user_info is None:
            raise UserInfoMissingError()
        return self._user_info

    # ── CRUD ─────────────────────────────────────────────────────────────────

    def create_invoice(self, invoice: Invoice) -> Invoice:
        """
        Persist a new invoice owned by the bound user.

        Status is forced to Created and the total is recomputed from the rows.
        """
        self._require_customer(invoice.customer_id)
        new_invoice = invoice.model_copy(
            update={
                "id": None,
                "user_id": self.user.id,
                "status": InvoiceStatus.CREATED,
                "deleted_at": None,
            }
        ).with_computed_total()
        created = self.store.create(new_invoice)
        logger.info(
            "invoice_created",
            invoice_id=created.id,
            user_id=self.user.id,
            total_sum=str(created.total_sum),
        )
        return created

    def edit_invoice(
        self,
        invoice_id: int,
        customer_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        comment: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
    ) -> Invoice:
        """Overwrite only the fields that are provided; ``updated_at`` always moves."""
        candidates = {
            "customer_id": customer_id,
            "start_date": as_utc(start_date),
            "end_date": as_utc(end_date),
            "comment": comment,
            "status": status,
        }
        changes = {field: value for field, value in candidates.items() if value is not None}

        if "customer_id" in changes:
            self._require_customer(changes["customer_id"])

        if "start_date" in changes or "end_date" in changes:
            current = self.get_invoice(invoice_id)
            new_start = changes.get("start_date", current.start_date)
            new_end = changes.get("end_date", current.end_date)
            if new_end < new_start:
                raise ValueError("end_date must not be before start_date")

        updated = self.store.update(invoice_id, self.user.id, changes)
        if updated is None:
            raise InvoiceNotFoundError(invoice_id)
        logger.info("invoice_updated", invoice_id=invoice_id, fields=sorted(changes))
        return updated

    def change_invoice_status(self, invoice_id: int, status: InvoiceStatus) -> Invoice:
        # Any status may replace any other.
        updated = self.store.update(invoice_id, self.user.id, {"status": status})
        if updated is None:
            raise InvoiceNotFoundError(invoice_id)
        logger.info("invoice_status_changed", invoice_id=invoice_id, status=status.value)
        return updated

    def delete_invoice(self, invoice_id: int) -> Invoice:
        """Soft-delete and return the invoice as it was before."""
        deleted = self.store.soft_delete(invoice_id, self.user.id)
        if deleted is None:
            raise InvoiceNotFoundError(invoice_id)
        logger.info("invoice_deleted", invoice_id=invoice_id)
        return deleted

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.store.get(invoice_id, self.user.id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def get_invoices(
        self,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        order_by: Optional[OrderBy] = None,
    ) -> Page[Invoice]:
        """
        Return one 1-indexed page of the bound user's invoices.

        Args:
            page: Page number, starting at 1. Pages past the end come back empty.
            page_size: Items per page
            search: Optional case-insensitive text filter
            order_by: Sort key, newest first when omitted

        Returns:
            Page with the items and the pagination totals
        """
        if page < 1:
            raise ValueError("page must be >= 1")
        if page_size < 1:
            raise ValueError("page_size must be >= 1")

        search = search.strip() if search else None
        items, total = self.store.list(self.user.id, page, page_size, search or None, order_by)
        return Page[Invoice](
            items=items,
            page=page,
            page_size=page_size,
            total_count=total,
            total_pages=math.ceil(total / page_size) if total else 0,
        )

    def _require_customer(self, customer_id: int) -> None:
        if self.customer_store.get(customer_id, self.user.id) is None:
            raise CustomerNotFoundError(customer_id)

    # ── Export ───────────────────────────────────────────────────────────────

    def generate_invoice_pdf(self, invoice_id: int) -> bytes:
        model = self._document_model(invoice_id)
        with logger.timed("invoice_pdf_render", invoice_id=invoice_id):
            content = self.pdf_renderer(model)
        logger.info("invoice_pdf_generated", invoice_id=invoice_id, size=len(content))
        return content

    def generate_invoice_docx(self, invoice_id: int) -> bytes:
        model = self._document_model(invoice_id)
        with logger.timed("invoice_docx_render", invoice_id=invoice_id):
            content = self.docx_renderer(model)
        logger.info("invoice_docx_generated", invoice_id=invoice_id, size=len(content))
        return content

    def _document_model(self, invoice_id: int) -> InvoiceDocumentModel:
        invoice = self.get_invoice(invoice_id)
        customer = self.customer_store.get(invoice.customer_id, self.user.id)
        if customer is None:
            raise CustomerNotFoundError(invoice.customer_id)

        seller = self.user
        issued = invoice.created_at or invoice.start_date
        return InvoiceDocumentModel(
            invoice_number=invoice.id,
            issue_date=issued.date(),
            due_date=(invoice.end_date + timedelta(days=settings.invoice_payment_terms_days)).date(),
            seller_address=Address(
                name=seller.name,
                address=seller.address,
                email=seller.email,
                phone_number=seller.phone_number,
            ),
            customer_address=Address(
                name=customer.name,
                address=customer.address,
                email=customer.email,
                phone_number=customer.phone_number,
            ),
            rows=invoice.rows,
            total_sum=invoice.total_sum,
            comment=invoice.comment,
            currency_symbol=settings.invoice_currency_symbol,
        )
