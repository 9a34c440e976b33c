"""Invoice endpoints: CRUD, status changes, paginated listing and document export."""

from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from backend.api.dependencies import get_invoice_service, require_store
from backend.api.schemas import InvoiceCreateRequest, ProblemResponse
from backend.core.config import settings
from backend.core.exceptions import NotFoundError
from backend.core.logging import get_logger
from backend.core.models import Invoice, InvoiceStatus, OrderBy, Page
from backend.services.invoice_service import InvoiceService

router = APIRouter(
    prefix="/Invoices",
    tags=["invoices"],
    dependencies=[Depends(require_store)],
    responses={
        404: {"model": ProblemResponse},
        500: {"model": ProblemResponse},
        503: {"model": ProblemResponse},
    },
)
logger = get_logger(__name__)


@contextmanager
def _problem_on_failure(event: str, **context):
    """Translate service failures into HTTP problems."""
    try:
        yield
    except HTTPException:
        raise
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except Exception as e:
        logger.error(event, error=e, **context)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong",
        )


@router.get("", response_model=Page[Invoice])
async def get_invoices(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, alias="pageSize"),
    search: Optional[str] = None,
    order_by: Optional[OrderBy] = Query(None, alias="orderBy"),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List the caller's invoices, one page at a time."""
    with _problem_on_failure("invoices_list_failed", page=page, page_size=page_size):
        return service.get_invoices(page, page_size, search, order_by)


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    """Get an invoice with its rows."""
    with _problem_on_failure("invoice_get_failed", invoice_id=invoice_id):
        return service.get_invoice(invoice_id)


@router.post("", response_model=Invoice, status_code=201)
async def create_invoice(
    body: InvoiceCreateRequest,
    service: InvoiceService = Depends(get_invoice_service),
):
    """Create an invoice; row sums and the total are computed here."""
    with _problem_on_failure("invoice_create_failed"):
        return service.create_invoice(body.to_invoice())


@router.put("/{invoice_id}", response_model=Invoice)
async def edit_invoice(
    invoice_id: int,
    customer_id: Optional[int] = Query(None, alias="customerId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    comment: Optional[str] = None,
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Partially edit an invoice; omitted parameters keep their stored values."""
    with _problem_on_failure("invoice_edit_failed", invoice_id=invoice_id):
        return service.edit_invoice(
            invoice_id,
            customer_id=customer_id,
            start_date=start_date,
            end_date=end_date,
            comment=comment,
            status=invoice_status,
        )


@router.put("/{invoice_id}/status", response_model=Invoice)
async def change_invoice_status(
    invoice_id: int,
    invoice_status: InvoiceStatus = Query(..., alias="status"),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Set the status of an invoice."""
    with _problem_on_failure("invoice_status_change_failed", invoice_id=invoice_id):
        return service.change_invoice_status(invoice_id, invoice_status)


@router.delete("/{invoice_id}", response_model=Invoice)
async def delete_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    """Soft-delete an invoice and return it as it was."""
    with _problem_on_failure("invoice_delete_failed", invoice_id=invoice_id):
        return service.delete_invoice(invoice_id)


@router.get("/{invoice_id}/pdf", response_class=Response)
async def generate_invoice_pdf(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    """Download the invoice as a PDF."""
    with _problem_on_failure("invoice_pdf_failed", invoice_id=invoice_id):
        content = service.generate_invoice_pdf(invoice_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="invoice.pdf"'},
    )


@router.get("/{invoice_id}/docx", response_class=Response)
async def generate_invoice_docx(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    """Download the invoice as a Word document."""
    with _problem_on_failure("invoice_docx_failed", invoice_id=invoice_id):
        content = service.generate_invoice_docx(invoice_id)
    return Response(
        content=content,
        media_type="application/docx",
        headers={"Content-Disposition": 'attachment; filename="invoice.docx"'},
    )
