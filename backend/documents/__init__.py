"""Invoice document renderers (PDF via reportlab, DocX via python-docx)."""

from backend.documents.docx_renderer import render_invoice_docx
from backend.documents.pdf_renderer import render_invoice_pdf

__all__ = ["render_invoice_pdf", "render_invoice_docx"]
