"""Render an invoice as a PDF using ReportLab's platypus layout engine."""

import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.core.models import Address, InvoiceDocumentModel
from backend.documents.formatting import address_lines, money, quantity

MARGIN = 50

_styles = getSampleStyleSheet()
_TITLE = ParagraphStyle(
    "InvoiceTitle",
    parent=_styles["Normal"],
    fontName="Helvetica-Bold",
    fontSize=20,
    leading=24,
    textColor=colors.HexColor("#2196F3"),
)
_BODY = _styles["Normal"]
_HEADING = ParagraphStyle("Heading", parent=_BODY, fontName="Helvetica-Bold", fontSize=14, leading=18)
_TOTAL = ParagraphStyle("GrandTotal", parent=_BODY, fontSize=14, leading=18, alignment=TA_RIGHT)


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so the footer can show "page / total"."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._page_states = []

    def showPage(self):
        self._page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._page_states)
        for state in self._page_states:
            self.__dict__.update(state)
            self.setFont("Helvetica", 9)
            self.drawCentredString(self._pagesize[0] / 2, MARGIN / 2, f"{self.getPageNumber()} / {total}")
            super().showPage()
        super().save()


def _markup(text: str) -> str:
    """Escape text for a Paragraph, keeping its line breaks."""
    return "<br/>".join(escape(line) for line in text.splitlines())


def _address_block(title: str, address: Address) -> list:
    return [
        Paragraph(f"<b>{title}</b>", _BODY),
        Paragraph(_markup("\n".join(address_lines(address))), _BODY),
    ]


def _header(model: InvoiceDocumentModel) -> list:
    return [
        Paragraph(f"Invoice #{model.invoice_number}", _TITLE),
        Paragraph(f"<b>Issue date:</b> {model.issue_date:%d/%m/%Y}", _BODY),
        Paragraph(f"<b>Due date:</b> {model.due_date:%d/%m/%Y}", _BODY),
        Spacer(1, 20),
    ]


def _rows_table(model: InvoiceDocumentModel, width: float) -> Table:
    symbol = model.currency_symbol
    data = [["#", "Product", "Unit price", "Quantity", "Total"]]
    for index, row in enumerate(model.rows, start=1):
        data.append(
            [
                str(index),
                Paragraph(escape(row.service), _BODY),
                money(row.unit_price, symbol),
                quantity(row.quantity),
                money(row.sum, symbol),
            ]
        )

    relative = (width - 25) / 6
    table = Table(data, colWidths=[25, relative * 3, relative, relative, relative], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
                ("LINEBELOW", (0, 1), (-1, -1), 1, colors.HexColor("#E0E0E0")),
                ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ]
        )
    )
    return table


def _comments(comment: str, width: float) -> Table:
    box = Table(
        [[Paragraph("Comments", _HEADING)], [Paragraph(_markup(comment), _BODY)]],
        colWidths=[width],
    )
    box.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#EEEEEE")),
                ("LEFTPADDING", (0, 0), (-1, -1), 10),
                ("RIGHTPADDING", (0, 0), (-1, -1), 10),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ]
        )
    )
    return box


def render_invoice_pdf(model: InvoiceDocumentModel) -> bytes:
    """Lay out the invoice on A4 pages and return the PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=f"Invoice #{model.invoice_number}",
    )
    width = doc.width

    addresses = Table(
        [[_address_block("From", model.seller_address), "", _address_block("For", model.customer_address)]],
        colWidths=[(width - 50) / 2, 50, (width - 50) / 2],
    )
    addresses.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))

    story = _header(model)
    story += [
        addresses,
        Spacer(1, 10),
        _rows_table(model, width),
        Spacer(1, 10),
        Paragraph(f"Grand total: {money(model.total_sum, model.currency_symbol)}", _TOTAL),
    ]
    if model.comment and model.comment.strip():
        story += [Spacer(1, 25), _comments(model.comment, width)]

    doc.build(story, canvasmaker=_NumberedCanvas)
    return buffer.getvalue()
