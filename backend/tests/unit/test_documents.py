"""Unit tests for the PDF and DocX invoice renderers."""

import io
from datetime import date
from decimal import Decimal

import docx
import pytest

from backend.core.models import Address, InvoiceDocumentModel, InvoiceRow
from backend.documents import render_invoice_docx, render_invoice_pdf
from backend.documents.formatting import address_lines, money, quantity
from backend.documents.pdf_renderer import _markup


@pytest.fixture
def document_model():
    return InvoiceDocumentModel(
        invoice_number=17,
        issue_date=date(2024, 4, 1),
        due_date=date(2024, 5, 14),
        seller_address=Address(name="Northwind Consulting", address="1 Harbour Road", email="billing@northwind.test"),
        customer_address=Address(name="Fabrikam Ltd", phone_number="+1 555 0100"),
        rows=[
            InvoiceRow(service="Consulting", unit_price=Decimal("10"), quantity=Decimal("2")),
            InvoiceRow(service="Support & maintenance", unit_price=Decimal("5"), quantity=Decimal("1")),
        ],
        total_sum=Decimal("25"),
        comment="Thank you for your business",
    )


def _docx_text(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    parts = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            parts.extend(cell.text for cell in row.cells)
    return "\n".join(parts)


def test_formatting_helpers():
    assert money(Decimal("1234.5"), "$") == "1,234.50$"
    assert quantity(Decimal("100")) == "100"
    assert quantity(Decimal("1.500")) == "1.5"
    assert address_lines(Address(name="A", email="a@b.test")) == ["A", "a@b.test"]


def test_pdf_is_a_pdf(document_model):
    content = render_invoice_pdf(document_model)

    assert content.startswith(b"%PDF")
    assert b"%%EOF" in content[-64:]


def test_pdf_without_comment_or_rows(document_model):
    empty = document_model.model_copy(update={"rows": [], "comment": "   ", "total_sum": Decimal("0")})

    assert render_invoice_pdf(empty).startswith(b"%PDF")


def test_pdf_renders_long_invoices(document_model):
    rows = [InvoiceRow(service=f"Item {n}", unit_price=Decimal("1"), quantity=Decimal("1")) for n in range(200)]
    long_model = document_model.model_copy(update={"rows": rows, "total_sum": Decimal("200")})

    assert render_invoice_pdf(long_model).startswith(b"%PDF")


def test_docx_contents(document_model):
    text = _docx_text(render_invoice_docx(document_model))

    assert "Invoice #17" in text
    assert "Issue date: 01/04/2024" in text
    assert "Due date: 14/05/2024" in text
    assert "Fabrikam Ltd" in text
    assert "Northwind Consulting" in text
    assert "Support & maintenance" in text
    assert "20.00$" in text
    assert "Grand total: 25.00$" in text
    assert "Thank you for your business" in text


def test_docx_omits_blank_comment(document_model):
    text = _docx_text(render_invoice_docx(document_model.model_copy(update={"comment": None})))

    assert "Comments" not in text


def test_pdf_comment_keeps_line_breaks():
    assert _markup("Net 14 days\nBank: IBAN <DE00>") == "Net 14 days<br/>Bank: IBAN &lt;DE00&gt;"


def test_pdf_with_multiline_comment(document_model):
    content = render_invoice_pdf(document_model.model_copy(update={"comment": "Line one\n\nLine three"}))

    assert content.startswith(b"%PDF")
