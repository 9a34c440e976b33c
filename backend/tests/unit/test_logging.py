"""Unit tests for the structured log formatter."""

import json
import logging

from invoicegen_logging import LogContext, correlation_id_var
from invoicegen_logging.logger import StructuredFormatter


def _record(message="invoice_created", **extra):
    record = logging.LogRecord("invoicegen-api.InvoiceService", logging.WARNING, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_output_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    formatter = StructuredFormatter("invoicegen-api")
    token = correlation_id_var.set("req-123")
    try:
        with LogContext(user_id="user-1"):
            line = formatter.format(_record(log_context={"invoice_id": 5}, method_name="create"))
    finally:
        correlation_id_var.reset(token)

    entry = json.loads(line)
    assert entry["level"] == "WARN"
    assert entry["message"] == "invoice_created"
    assert entry["logger"] == "InvoiceService"
    assert entry["correlationId"] == "req-123"
    assert entry["method"] == "create"
    assert entry["context"] == {"user_id": "user-1", "invoice_id": 5}


def test_pretty_output_in_development(monkeypatch):
    monkeypatch.setenv("ENV", "development")
    formatter = StructuredFormatter("invoicegen-api")

    line = formatter.format(_record(log_context={"invoice_id": 5}))

    assert "invoice_created" in line
    assert "invoice_id" in line
