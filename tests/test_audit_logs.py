"""Integration tests covering audit log filtering and export."""
from __future__ import annotations

import csv
import io
import os
from datetime import datetime, timedelta, timezone
from typing import Iterator
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_feature_toggle.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_MODE", "local")

from feature_toggle.database import Base, SessionLocal, engine  # noqa: E402
from feature_toggle.main import app  # noqa: E402
from feature_toggle.models import AuditLogEntry, User  # noqa: E402
from feature_toggle.services import get_current_user  # noqa: E402
from feature_toggle.services.audit_service import EXPORT_HEADER, resolve_cutoff  # noqa: E402

NOW = datetime.now(timezone.utc)
RESOURCE_PROD = uuid4()
RESOURCE_DEV = uuid4()
ALICE = uuid4()
BOB = uuid4()


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(AuditLogEntry))
        session.execute(delete(User))
        session.commit()
    yield


def _entry(*, days_ago: float, user_id, toggle_name: str, resource_id, environment: str, new_state: bool) -> AuditLogEntry:
    return AuditLogEntry(
        timestamp=NOW - timedelta(days=days_ago),
        user_id=user_id,
        user_name="Alice" if user_id == ALICE else "Bob",
        user_email="alice@contoso.com" if user_id == ALICE else "bob@contoso.com",
        action="enabled" if new_state else "disabled",
        toggle_id=uuid4(),
        toggle_name=toggle_name,
        resource_id=resource_id,
        resource_name="Payments (prod)" if resource_id == RESOURCE_PROD else "Payments (dev)",
        environment_type=environment,
        previous_state=not new_state,
        new_state=new_state,
    )


@pytest.fixture(autouse=True)
def _seed_entries(_clean_database) -> None:
    with SessionLocal() as session:
        session.add_all(
            [
                _entry(days_ago=0.1, user_id=ALICE, toggle_name="NewCheckout", resource_id=RESOURCE_PROD, environment="production", new_state=True),
                _entry(days_ago=1, user_id=BOB, toggle_name="DarkMode", resource_id=RESOURCE_DEV, environment="development", new_state=False),
                _entry(days_ago=3, user_id=ALICE, toggle_name="newcheckout-v2", resource_id=RESOURCE_DEV, environment="development", new_state=True),
                _entry(days_ago=12, user_id=BOB, toggle_name="NewCheckout", resource_id=RESOURCE_PROD, environment="production", new_state=False),
                _entry(days_ago=45, user_id=ALICE, toggle_name="Legacy", resource_id=RESOURCE_PROD, environment="production", new_state=True),
            ]
        )
        session.commit()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        reader = User(email="reader@contoso.com", name="Reader", role="read-only")
        app.dependency_overrides[get_current_user] = lambda: reader
        yield test_client
    app.dependency_overrides.clear()


def test_resolve_cutoff_defaults_to_seven_days() -> None:
    now = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)
    assert resolve_cutoff("last30days", now) == now - timedelta(days=30)
    assert resolve_cutoff("last90days", now) == now - timedelta(days=90)
    assert resolve_cutoff("last7days", now) == now - timedelta(days=7)
    assert resolve_cutoff("yesterday", now) == now - timedelta(days=7)
    assert resolve_cutoff(None, now) == now - timedelta(days=7)


def test_default_listing_is_last_seven_days_newest_first(client: TestClient) -> None:
    response = client.get("/api/audit-logs")
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["total_count"] == 3
    assert body["has_more"] is False
    assert [log["toggle_name"] for log in body["logs"]] == ["NewCheckout", "DarkMode", "newcheckout-v2"]


def test_filters_combine(client: TestClient) -> None:
    by_name = client.get("/api/audit-logs", params={"toggle_name": "NEWCHECKOUT", "date_range": "last30days"}).json()
    assert by_name["total_count"] == 3

    by_user = client.get("/api/audit-logs", params={"user_id": str(BOB), "date_range": "last30days"}).json()
    assert {log["user_email"] for log in by_user["logs"]} == {"bob@contoso.com"}
    assert by_user["total_count"] == 2

    prod_disabled = client.get(
        "/api/audit-logs",
        params={"environment_type": "production", "action": "disabled", "date_range": "last90days"},
    ).json()
    assert prod_disabled["total_count"] == 1
    assert prod_disabled["logs"][0]["user_name"] == "Bob"

    by_resource = client.get("/api/audit-logs", params={"resource_id": str(RESOURCE_PROD), "date_range": "last90days"}).json()
    assert by_resource["total_count"] == 3


def test_unknown_filter_values_are_ignored(client: TestClient) -> None:
    body = client.get("/api/audit-logs", params={"environment_type": "all", "action": "all", "date_range": "forever"}).json()
    assert body["total_count"] == 3


def test_pagination_reports_more_rows(client: TestClient) -> None:
    first = client.get("/api/audit-logs", params={"date_range": "last90days", "limit": 2}).json()
    assert first["total_count"] == 5
    assert len(first["logs"]) == 2
    assert first["has_more"] is True

    last = client.get("/api/audit-logs", params={"date_range": "last90days", "limit": 2, "offset": 4}).json()
    assert len(last["logs"]) == 1
    assert last["has_more"] is False

    assert client.get("/api/audit-logs", params={"limit": 0}).status_code == 422


def test_csv_export_respects_date_range(client: TestClient) -> None:
    response = client.post("/api/audit-logs/export", json={"format": "csv", "filters": {"date_range": "last30days"}})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="audit-log-')
    assert disposition.endswith('.csv"')

    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0] == EXPORT_HEADER
    assert response.text.splitlines()[0].startswith('"Timestamp","User"')
    assert len(rows) == 5
    assert [row[4] for row in rows[1:]] == ["NewCheckout", "DarkMode", "newcheckout-v2", "NewCheckout"]
    assert rows[1][7:] == ["disabled", "enabled"]
    assert rows[4][7:] == ["enabled", "disabled"]

    cutoff = resolve_cutoff("last30days").replace(tzinfo=None)
    for row in rows[1:]:
        assert datetime.fromisoformat(row[0]).replace(tzinfo=None) >= cutoff


def test_json_export_returns_rows(client: TestClient) -> None:
    response = client.post(
        "/api/audit-logs/export",
        json={"format": "json", "filters": {"environment_type": "development"}},
    )
    assert response.status_code == 200
    rows = response.json()
    assert [row["toggle_name"] for row in rows] == ["DarkMode", "newcheckout-v2"]
    assert rows[0]["previous_state"] == "enabled"
    assert rows[0]["new_state"] == "disabled"
    assert rows[0]["environment"] == "development"


def test_audit_logs_require_authentication() -> None:
    with TestClient(app) as unauthenticated:
        assert unauthenticated.get("/api/audit-logs").status_code == 401


def test_toggle_name_filter_matches_underscores_literally(client: TestClient) -> None:
    with SessionLocal() as session:
        session.add_all(
            [
                _entry(days_ago=0.5, user_id=ALICE, toggle_name="dark_mode", resource_id=RESOURCE_DEV, environment="development", new_state=True),
                _entry(days_ago=0.6, user_id=BOB, toggle_name="darkXmode", resource_id=RESOURCE_DEV, environment="development", new_state=True),
            ]
        )
        session.commit()

    by_name = client.get("/api/audit-logs", params={"toggle_name": "Dark_Mode"}).json()
    assert [log["toggle_name"] for log in by_name["logs"]] == ["dark_mode"]

    assert client.get("/api/audit-logs", params={"toggle_name": "%"}).json()["total_count"] == 0

    exported = client.post("/api/audit-logs/export", json={"format": "json", "filters": {"toggle_name": "dark_mode"}})
    assert [row["toggle_name"] for row in exported.json()] == ["dark_mode"]
