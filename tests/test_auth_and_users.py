"""Integration tests covering token validation, user provisioning and role management."""
from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Iterator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import delete, select

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_feature_toggle.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_MODE", "local")

from feature_toggle.config import get_settings  # noqa: E402
from feature_toggle.database import Base, SessionLocal, engine  # noqa: E402
from feature_toggle.main import app  # noqa: E402
from feature_toggle.models import User  # noqa: E402
from feature_toggle.services import create_access_token  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def _headers(email: str, name: str | None = None) -> dict[str, str]:
    token = create_access_token(str(uuid4()), email=email, name=name)
    return {"Authorization": f"Bearer {token}"}


def test_first_request_provisions_read_only_user(client: TestClient) -> None:
    response = client.get("/api/auth/me", headers=_headers("Dana@Contoso.com", "Dana"))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["email"] == "dana@contoso.com"
    assert body["name"] == "Dana"
    assert body["role"] == "read-only"

    with SessionLocal() as session:
        user = session.scalar(select(User).where(User.email == "dana@contoso.com"))
        assert user is not None
        assert user.external_id


def test_admin_emails_are_provisioned_as_admin(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "admin_emails", "ops@contoso.com, lead@contoso.com")

    response = client.get("/api/auth/me", headers=_headers("LEAD@contoso.com"))

    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_existing_role_is_kept_on_later_requests(client: TestClient) -> None:
    headers = _headers("erin@contoso.com")
    assert client.get("/api/auth/me", headers=headers).json()["role"] == "read-only"

    with SessionLocal() as session:
        user = session.scalar(select(User).where(User.email == "erin@contoso.com"))
        user.role = "admin"
        session.commit()

    assert client.get("/api/auth/me", headers=headers).json()["role"] == "admin"


def test_missing_or_invalid_tokens_are_rejected(client: TestClient) -> None:
    missing = client.get("/api/auth/me")
    assert missing.status_code == 401
    assert missing.json()["detail"] == "Missing bearer token"

    assert client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401

    expired = jwt.encode(
        {"sub": "x", "email": "x@contoso.com", "exp": datetime.now(timezone.utc) - timedelta(minutes=5)},
        "test-secret-key",
        algorithm="HS256",
    )
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"}).status_code == 401

    forged = jwt.encode(
        {"sub": "x", "email": "x@contoso.com", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "some-other-key",
        algorithm="HS256",
    )
    assert client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"}).status_code == 401


def test_token_without_email_is_rejected(client: TestClient) -> None:
    token = jwt.encode(
        {"sub": "service", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "test-secret-key",
        algorithm="HS256",
    )
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    with SessionLocal() as session:
        assert session.scalars(select(User)).all() == []


def test_admin_manages_roles(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "admin_emails", "ops@contoso.com")
    admin_headers = _headers("ops@contoso.com")
    reader_headers = _headers("reader@contoso.com")
    client.get("/api/auth/me", headers=admin_headers)
    reader_id = client.get("/api/auth/me", headers=reader_headers).json()["id"]

    listing = client.get("/api/users", headers=admin_headers)
    assert listing.status_code == 200
    assert listing.json()["total"] == 2

    promoted = client.patch(f"/api/users/{reader_id}/role", headers=admin_headers, json={"role": "admin"})
    assert promoted.status_code == 200, promoted.text
    assert promoted.json()["role"] == "admin"

    invalid = client.patch(f"/api/users/{reader_id}/role", headers=admin_headers, json={"role": "owner"})
    assert invalid.status_code == 422

    missing = client.patch(f"/api/users/{uuid4()}/role", headers=admin_headers, json={"role": "admin"})
    assert missing.status_code == 404


def test_admin_cannot_change_own_role(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "admin_emails", "ops@contoso.com")
    headers = _headers("ops@contoso.com")
    admin_id = client.get("/api/auth/me", headers=headers).json()["id"]

    response = client.patch(f"/api/users/{admin_id}/role", headers=headers, json={"role": "read-only"})
    assert response.status_code == 400


def test_read_only_user_cannot_manage_users(client: TestClient) -> None:
    headers = _headers("reader@contoso.com")
    user_id = client.get("/api/auth/me", headers=headers).json()["id"]

    assert client.get("/api/users", headers=headers).status_code == 403
    assert client.patch(f"/api/users/{user_id}/role", headers=headers, json={"role": "admin"}).status_code == 403


def test_system_endpoints(client: TestClient) -> None:
    assert client.get("/api").json() == {"service": get_settings().app_name, "version": get_settings().api_version}

    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    assert ready.json()["status"] == "ready"

    config = client.get("/api/config").json()
    assert config["authority"].startswith("https://login.microsoftonline.com/")
    assert "client_secret" not in config
