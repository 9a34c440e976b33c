"""API tests for /api/auth with an in-memory user store."""

import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from backend.api.main import app
from backend.api.routers.auth import _authenticate, _check_password
from backend.auth.dependencies import get_user_store
from backend.auth.utils import hash_password
from backend.core.exceptions import DuplicateEmailError, InvalidCredentialsError, UserNotFoundError


class FakeUserStore:
    def __init__(self):
        self.users = {}

    def create_user(self, name, email, hashed_pw, address=None, phone_number=None):
        email = email.strip().lower()
        if any(u["email"] == email for u in self.users.values()):
            raise DuplicateEmailError(email)
        now = datetime.now(timezone.utc)
        user = {
            "id": str(uuid.uuid4()),
            "name": name,
            "address": address,
            "email": email,
            "phone_number": phone_number,
            "hashed_pw": hashed_pw,
            "created_at": now,
            "updated_at": now,
        }
        self.users[user["id"]] = user
        return {k: v for k, v in user.items() if k != "hashed_pw"}

    def get_by_email(self, email):
        return next((dict(u) for u in self.users.values() if u["email"] == email.strip().lower()), None)

    def get_by_id(self, user_id, with_password=False):
        user = self.users.get(user_id)
        if not user:
            return None
        return dict(user) if with_password else {k: v for k, v in user.items() if k != "hashed_pw"}

    def update_profile(self, user_id, name=None, address=None, phone_number=None):
        user = self.users.get(user_id)
        if not user:
            return None
        for key, value in (("name", name), ("address", address), ("phone_number", phone_number)):
            if value is not None:
                user[key] = value
        return self.get_by_id(user_id)

    def update_password(self, user_id, hashed_pw):
        self.users[user_id]["hashed_pw"] = hashed_pw

    def delete_user(self, user_id):
        self.users.pop(user_id, None)


REGISTRATION = {
    "name": "Ada Lovelace",
    "email": "Ada@Engines.test",
    "address": "12 St James's Square",
    "password": "analytical-engine",
}


@pytest.fixture
def user_store():
    return FakeUserStore()


@pytest.fixture
def client(user_store):
    app.dependency_overrides[get_user_store] = lambda: user_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client):
    response = client.post("/api/auth/register", json=REGISTRATION)
    assert response.status_code == 201
    return response.json()


def test_register_returns_token(client):
    user = _register(client)

    assert user["email"] == "ada@engines.test"
    assert user["access_token"]
    me = client.get("/api/auth/me", headers=_auth(user["access_token"]))
    assert me.json()["name"] == "Ada Lovelace"


def test_register_duplicate_email(client):
    _register(client)

    response = client.post("/api/auth/register", json=REGISTRATION)

    assert response.status_code == 409


def test_register_validation(client):
    assert client.post("/api/auth/register", json={**REGISTRATION, "password": "short"}).status_code == 422
    assert client.post("/api/auth/register", json={**REGISTRATION, "email": "nope"}).status_code == 422


def test_login(client):
    _register(client)

    ok = client.post("/api/auth/login", data={"username": "ada@engines.test", "password": "analytical-engine"})
    bad = client.post("/api/auth/login", data={"username": "ada@engines.test", "password": "babbage"})

    assert ok.status_code == 200
    assert ok.json()["token_type"] == "bearer"
    assert bad.status_code == 401
    assert bad.json()["detail"] == "Incorrect email or password"


def test_edit_profile_keeps_omitted_fields(client):
    token = _register(client)["access_token"]

    response = client.put("/api/auth/me", params={"phone_number": "+44 20 0000"}, headers=_auth(token))

    assert response.json()["phone_number"] == "+44 20 0000"
    assert response.json()["address"] == REGISTRATION["address"]


def test_change_password(client):
    token = _register(client)["access_token"]

    wrong = client.put(
        "/api/auth/me/password",
        json={"old_password": "babbage-engine", "new_password": "difference-engine"},
        headers=_auth(token),
    )
    right = client.put(
        "/api/auth/me/password",
        json={"old_password": "analytical-engine", "new_password": "difference-engine"},
        headers=_auth(token),
    )

    assert wrong.status_code == 400
    assert wrong.json() == {"title": "Bad Request", "status": 400, "detail": "Password is incorrect"}
    assert right.status_code == 200
    login = client.post("/api/auth/login", data={"username": "ada@engines.test", "password": "difference-engine"})
    assert login.status_code == 200


def test_delete_account(client):
    user = _register(client)
    token = user["access_token"]

    refused = client.request(
        "DELETE", "/api/auth/me", json={"password_confirmation": "nope"}, headers=_auth(token)
    )
    deleted = client.request(
        "DELETE", "/api/auth/me", json={"password_confirmation": "analytical-engine"}, headers=_auth(token)
    )

    assert refused.status_code == 400
    assert deleted.status_code == 204
    stale = client.get("/api/auth/me", headers=_auth(token))
    assert stale.status_code == 401
    assert stale.json()["detail"] == f"User {user['id']} not found"


def test_credential_checks_raise_domain_errors(user_store):
    created = user_store.create_user("Grace", "grace@navy.test", hash_password("cobol-compiler"))

    assert _authenticate(user_store, "GRACE@navy.test", "cobol-compiler")["id"] == created["id"]
    with pytest.raises(InvalidCredentialsError):
        _authenticate(user_store, "grace@navy.test", "fortran")
    with pytest.raises(InvalidCredentialsError):
        _authenticate(user_store, "nobody@navy.test", "cobol-compiler")
    with pytest.raises(InvalidCredentialsError):
        _check_password(user_store, created["id"], "fortran")
    with pytest.raises(UserNotFoundError):
        _check_password(user_store, "missing-id", "cobol-compiler")
