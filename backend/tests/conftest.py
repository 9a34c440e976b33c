import itertools
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.core.models import Customer, Invoice, InvoiceRow, UserInfo


def _now():
    return datetime.now(timezone.utc)


class FakeInvoiceStore:
    """In-memory stand-in for InvoiceStore with the same contract."""

    def __init__(self):
        self.invoices = {}
        self._ids = itertools.count(1)

    def create(self, invoice):
        now = _now()
        stored = invoice.model_copy(
            update={"id": next(self._ids), "created_at": now, "updated_at": now}
        )
        self.invoices[stored.id] = stored
        return stored

    def _live(self, invoice_id, user_id):
        invoice = self.invoices.get(invoice_id)
        if invoice is None or invoice.user_id != user_id or invoice.deleted_at is not None:
            return None
        return invoice

    def get(self, invoice_id, user_id):
        return self._live(invoice_id, user_id)

    def update(self, invoice_id, user_id, changes):
        invoice = self._live(invoice_id, user_id)
        if invoice is None:
            return None
        updated = invoice.model_copy(update={**changes, "updated_at": _now()})
        self.invoices[invoice_id] = updated
        return updated

    def soft_delete(self, invoice_id, user_id):
        invoice = self._live(invoice_id, user_id)
        if invoice is None:
            return None
        self.invoices[invoice_id] = invoice.model_copy(update={"deleted_at": _now()})
        return invoice

    def list(self, user_id, page, page_size, search=None, order_by=None):
        matches = [
            i for i in self.invoices.values()
            if i.user_id == user_id and i.deleted_at is None
        ]
        if search:
            needle = search.lower()
            matches = [
                i for i in matches
                if needle in (i.comment or "").lower()
                or needle in i.status.value.lower()
                or needle in str(i.id)
            ]
        if order_by is None:
            matches.sort(key=lambda i: (i.created_at, i.id), reverse=True)
        else:
            matches.sort(key=lambda i: (getattr(i, order_by.column), i.id), reverse=order_by.descending)
        start = (page - 1) * page_size
        return matches[start:start + page_size], len(matches)


class FakeCustomerStore:
    def __init__(self):
        self.customers = {}
        self._ids = itertools.count(1)

    def create(self, customer):
        now = _now()
        stored = customer.model_copy(update={"id": next(self._ids), "created_at": now, "updated_at": now})
        self.customers[stored.id] = stored
        return stored

    def get(self, customer_id, user_id):
        customer = self.customers.get(customer_id)
        if customer is None or customer.user_id != user_id:
            return None
        return customer

    def list(self, user_id):
        return [c for c in self.customers.values() if c.user_id == user_id]


@pytest.fixture
def user():
    return UserInfo(
        id="user-1",
        name="Northwind Consulting",
        email="billing@northwind.test",
        address="1 Harbour Road, Baku",
        phone_number="+994 12 000 00 00",
    )


@pytest.fixture
def other_user():
    return UserInfo(id="user-2", name="Contoso", email="ap@contoso.test")


@pytest.fixture
def invoice_store():
    return FakeInvoiceStore()


@pytest.fixture
def customer_store(user):
    store = FakeCustomerStore()
    store.create(
        Customer(
            user_id=user.id,
            name="Fabrikam Ltd",
            address="42 Industrial Ave",
            email="accounts@fabrikam.test",
        )
    )
    return store


@pytest.fixture
def invoice_service(invoice_store, customer_store, user):
    from backend.services.invoice_service import InvoiceService

    service = InvoiceService(store=invoice_store, customer_store=customer_store)
    service.set_user_info(user)
    return service


@pytest.fixture
def sample_invoice():
    return Invoice(
        customer_id=1,
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 1, 31, tzinfo=timezone.utc),
        rows=[
            InvoiceRow(service="Consulting", unit_price=Decimal("10"), quantity=Decimal("2")),
            InvoiceRow(service="Support", unit_price=Decimal("5"), quantity=Decimal("1")),
        ],
        comment="January retainer",
    )


@pytest.fixture
def api_client(invoice_service, user):
    """TestClient with auth, the store probe and the service replaced by in-memory fakes."""
    from backend.api.dependencies import get_invoice_service, require_store
    from backend.api.main import app
    from backend.auth.dependencies import get_current_user

    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[require_store] = lambda: None
    app.dependency_overrides[get_invoice_service] = lambda: invoice_service
    yield TestClient(app)
    app.dependency_overrides.clear()
