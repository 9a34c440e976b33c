"""API tests for /api/Customers."""

import pytest
from fastapi.testclient import TestClient

from backend.api.dependencies import get_customer_store, require_store
from backend.api.main import app
from backend.auth.dependencies import get_current_user


@pytest.fixture
def client(customer_store, user):
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[require_store] = lambda: None
    app.dependency_overrides[get_customer_store] = lambda: customer_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_create_and_list(client, user):
    response = client.post("/api/Customers", json={"name": "Tailspin Toys", "email": "ap@tailspin.test"})

    assert response.status_code == 201
    assert response.json()["user_id"] == user.id
    names = sorted(c["name"] for c in client.get("/api/Customers").json())
    assert names == ["Fabrikam Ltd", "Tailspin Toys"]


def test_get_scoped_to_owner(client, customer_store, other_user):
    from backend.core.models import Customer

    foreign = customer_store.create(Customer(user_id=other_user.id, name="Not yours"))

    assert client.get("/api/Customers/1").json()["name"] == "Fabrikam Ltd"
    assert client.get(f"/api/Customers/{foreign.id}").status_code == 404


def test_store_unreachable_is_503(client, monkeypatch):
    app.dependency_overrides.pop(require_store)
    monkeypatch.setattr("backend.api.dependencies.db_ok", lambda: False)

    response = client.get("/api/Customers")

    assert response.status_code == 503
    assert response.json()["detail"] == "The invoice store is unavailable."
