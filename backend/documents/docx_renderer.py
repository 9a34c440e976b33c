"""Render an invoice as a Word document using python-docx."""

import io

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from backend.core.models import Address, InvoiceDocumentModel
from backend.documents.formatting import address_lines, money, quantity

_BLUE = RGBColor(0x21, 0x96, 0xF3)


def _labelled(document, label: str, value: str) -> None:
    paragraph = document.add_paragraph()
    paragraph.add_run(label).bold = True
    paragraph.add_run(value)


def _fill_address(cell, title: str, address: Address) -> None:
    cell.paragraphs[0].add_run(title).bold = True
    for line in address_lines(address):
        cell.add_paragraph(line)


def render_invoice_docx(model: InvoiceDocumentModel) -> bytes:
    """Build the same layout as the PDF export and return the .docx bytes."""
    symbol = model.currency_symbol
    document = Document()

    title = document.add_paragraph()
    run = title.add_run(f"Invoice #{model.invoice_number}")
    run.bold = True
    run.font.size = Pt(20)
    run.font.color.rgb = _BLUE

    _labelled(document, "Issue date: ", f"{model.issue_date:%d/%m/%Y}")
    _labelled(document, "Due date: ", f"{model.due_date:%d/%m/%Y}")

    addresses = document.add_table(rows=1, cols=2)
    _fill_address(addresses.rows[0].cells[0], "From", model.seller_address)
    _fill_address(addresses.rows[0].cells[1], "For", model.customer_address)

    document.add_paragraph()

    table = document.add_table(rows=1, cols=5)
    table.style = "Table Grid"
    for cell, heading in zip(table.rows[0].cells, ("#", "Product", "Unit price", "Quantity", "Total")):
        cell.paragraphs[0].add_run(heading).bold = True
    for index, row in enumerate(model.rows, start=1):
        cells = table.add_row().cells
        cells[0].text = str(index)
        cells[1].text = row.service
        cells[2].text = money(row.unit_price, symbol)
        cells[3].text = quantity(row.quantity)
        cells[4].text = money(row.sum, symbol)
        for cell in cells[2:]:
            cell.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.RIGHT

    total = document.add_paragraph()
    total.alignment = WD_ALIGN_PARAGRAPH.RIGHT
    total.add_run(f"Grand total: {money(model.total_sum, symbol)}").font.size = Pt(14)

    if model.comment and model.comment.strip():
        heading = document.add_paragraph()
        heading.add_run("Comments").bold = True
        document.add_paragraph(model.comment)

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
