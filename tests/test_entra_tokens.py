"""Unit tests for Azure AD access token validation."""
from __future__ import annotations

import asyncio
import os
import time
from datetime import datetime, timedelta, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from jose import jwk, jwt

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_feature_toggle.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_MODE", "local")

from feature_toggle.clients.entra import EntraKeySet, SigningKeyError  # noqa: E402
from feature_toggle.config import get_settings  # noqa: E402
from feature_toggle.services import auth_service  # noqa: E402

TENANT_ID = "11111111-2222-3333-4444-555555555555"
CLIENT_ID = "api-client-id"


def _private_pem() -> bytes:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


PRIVATE_PEM = _private_pem()


@pytest.fixture
def key_set(monkeypatch: pytest.MonkeyPatch) -> EntraKeySet:
    settings = get_settings()
    monkeypatch.setattr(settings, "auth_mode", "entra")
    monkeypatch.setattr(settings, "azure_ad_tenant_id", TENANT_ID)
    monkeypatch.setattr(settings, "azure_ad_client_id", CLIENT_ID)
    monkeypatch.setattr(settings, "azure_ad_audience", None)

    public = jwk.construct(PRIVATE_PEM, "RS256").public_key().to_dict()
    public["kid"] = "signing-key-1"

    keys = EntraKeySet(ttl_seconds=3600, timeout=5)
    keys._keys = {"signing-key-1": public}
    keys._fetched_at = time.monotonic()

    async def _no_refresh() -> None:
        return None

    monkeypatch.setattr(keys, "_refresh", _no_refresh)
    monkeypatch.setattr(auth_service, "get_key_set", lambda: keys)
    return keys


def _token(*, kid: str = "signing-key-1", **overrides) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "aud": f"api://{CLIENT_ID}",
        "iss": f"https://login.microsoftonline.com/{TENANT_ID}/v2.0",
        "oid": "object-id",
        "preferred_username": "Gale@Contoso.com",
        "name": "Gale",
        "iat": now,
        "exp": now + timedelta(minutes=10),
    }
    claims.update(overrides)
    return jwt.encode(claims, PRIVATE_PEM, algorithm="RS256", headers={"kid": kid})


def _decode(token: str) -> dict:
    return asyncio.run(auth_service.decode_access_token(token))


def test_valid_token_yields_identity(key_set) -> None:
    claims = _decode(_token())
    identity = auth_service.identity_from_claims(claims)

    assert identity.email == "gale@contoso.com"
    assert identity.subject == "object-id"
    assert identity.name == "Gale"


def test_v1_issuer_and_bare_client_id_audience_are_accepted(key_set) -> None:
    claims = _decode(_token(aud=CLIENT_ID, iss=f"https://sts.windows.net/{TENANT_ID}/"))
    assert claims["oid"] == "object-id"


@pytest.mark.parametrize(
    "overrides",
    [
        {"aud": "api://someone-else"},
        {"iss": "https://login.microsoftonline.com/another-tenant/v2.0"},
        {"exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        {"kid": "rotated-away"},
    ],
)
def test_rejected_tokens(key_set, overrides) -> None:
    with pytest.raises(HTTPException) as excinfo:
        _decode(_token(**overrides))
    assert excinfo.value.status_code == 401


def test_locally_signed_tokens_are_rejected_in_entra_mode(key_set) -> None:
    local = jwt.encode({"email": "x@contoso.com"}, "test-secret-key", algorithm="HS256")
    with pytest.raises(HTTPException) as excinfo:
        _decode(local)
    assert excinfo.value.status_code == 401


def test_unconfigured_tenant_is_a_server_error(key_set, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "azure_ad_tenant_id", None)
    with pytest.raises(HTTPException) as excinfo:
        _decode(_token())
    assert excinfo.value.status_code == 500


def test_issuer_follows_configured_instance(key_set, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "azure_ad_instance", "https://login.microsoftonline.us/")

    claims = _decode(_token(iss=f"https://login.microsoftonline.us/{TENANT_ID}/v2.0"))
    assert claims["oid"] == "object-id"

    with pytest.raises(HTTPException) as excinfo:
        _decode(_token())
    assert excinfo.value.status_code == 401


def test_unknown_kid_refetch_is_rate_limited(monkeypatch: pytest.MonkeyPatch) -> None:
    keys = EntraKeySet(ttl_seconds=3600, timeout=5, min_refetch_interval=60)
    keys._keys = {"signing-key-1": {"kid": "signing-key-1"}}
    refreshes: list[float] = []

    async def _count_refresh() -> None:
        refreshes.append(time.monotonic())
        keys._fetched_at = time.monotonic()

    monkeypatch.setattr(keys, "_refresh", _count_refresh)

    keys._fetched_at = time.monotonic()
    for _ in range(3):
        with pytest.raises(SigningKeyError):
            asyncio.run(keys.get_key("made-up"))
    assert refreshes == []

    keys._fetched_at = time.monotonic() - 120
    with pytest.raises(SigningKeyError):
        asyncio.run(keys.get_key("made-up"))
    assert len(refreshes) == 1
