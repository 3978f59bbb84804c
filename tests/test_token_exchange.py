"""Unit tests for the On-Behalf-Of token exchange."""
from __future__ import annotations

import os
from typing import Iterator

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_feature_toggle.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTH_MODE", "local")

from feature_toggle.config import get_settings  # noqa: E402
from feature_toggle.constants import APP_CONFIG_SCOPES, ARM_SCOPES  # noqa: E402
from feature_toggle.services import token_exchange  # noqa: E402
from feature_toggle.services.token_exchange import (  # noqa: E402
    StaticTokenCredential,
    TokenExchangeConfigurationError,
    TokenExchangeError,
    acquire_token_on_behalf_of,
    get_app_config_credential,
    get_management_token,
)


class _FakeConfidentialClient:
    instances: list["_FakeConfidentialClient"] = []
    result: dict | Exception = {}

    def __init__(self, client_id, authority=None, client_credential=None, **kwargs) -> None:
        self.client_id = client_id
        self.authority = authority
        self.client_credential = client_credential
        self.calls: list[tuple[str, list[str]]] = []
        _FakeConfidentialClient.instances.append(self)

    def acquire_token_on_behalf_of(self, user_assertion, scopes, **kwargs):
        self.calls.append((user_assertion, scopes))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture(autouse=True)
def _configured(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    settings = get_settings()
    monkeypatch.setattr(settings, "azure_ad_tenant_id", "11111111-2222-3333-4444-555555555555")
    monkeypatch.setattr(settings, "azure_ad_client_id", "api-client-id")
    monkeypatch.setattr(settings, "azure_ad_client_secret", "api-client-secret")
    monkeypatch.setattr(token_exchange.msal, "ConfidentialClientApplication", _FakeConfidentialClient)
    _FakeConfidentialClient.instances = []
    _FakeConfidentialClient.result = {"access_token": "downstream-token", "expires_in": 1800}
    token_exchange._get_confidential_client.cache_clear()
    yield
    token_exchange._get_confidential_client.cache_clear()


def test_management_token_uses_arm_scope() -> None:
    assert get_management_token("user-token") == "downstream-token"

    app = _FakeConfidentialClient.instances[0]
    assert app.client_id == "api-client-id"
    assert app.client_credential == "api-client-secret"
    assert app.authority == "https://login.microsoftonline.com/11111111-2222-3333-4444-555555555555"
    assert app.calls == [("user-token", list(ARM_SCOPES))]


def test_app_config_credential_wraps_exchanged_token() -> None:
    credential = get_app_config_credential("user-token")

    assert isinstance(credential, StaticTokenCredential)
    access = credential.get_token("https://azconfig.io/.default")
    assert access.token == "downstream-token"
    assert access.expires_on > 0
    assert _FakeConfidentialClient.instances[0].calls == [("user-token", list(APP_CONFIG_SCOPES))]


def test_missing_assertion_is_rejected_before_msal() -> None:
    with pytest.raises(TokenExchangeError, match="User token is required"):
        acquire_token_on_behalf_of(None, ARM_SCOPES, "Azure Management API")
    assert _FakeConfidentialClient.instances == []


@pytest.mark.parametrize("error", ["interaction_required", "consent_required", "invalid_grant"])
def test_consent_errors_ask_user_to_sign_in_again(error: str) -> None:
    _FakeConfidentialClient.result = {"error": error, "error_description": "AADSTS65001"}

    with pytest.raises(TokenExchangeError) as excinfo:
        acquire_token_on_behalf_of("user-token", ARM_SCOPES, "Azure Management API")
    assert str(excinfo.value) == "Additional consent required for Azure Management API. Please sign in again."


def test_other_msal_errors_carry_description() -> None:
    _FakeConfidentialClient.result = {"error": "invalid_client", "error_description": "bad secret"}

    with pytest.raises(TokenExchangeError) as excinfo:
        acquire_token_on_behalf_of("user-token", APP_CONFIG_SCOPES, "Azure App Configuration")
    assert str(excinfo.value) == "Failed to acquire token for Azure App Configuration: bad secret"


def test_unexpected_exceptions_propagate() -> None:
    _FakeConfidentialClient.result = ConnectionError("network down")

    with pytest.raises(ConnectionError):
        acquire_token_on_behalf_of("user-token", ARM_SCOPES, "Azure Management API")


def test_missing_client_secret_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(get_settings(), "azure_ad_client_secret", None)
    token_exchange._get_confidential_client.cache_clear()

    with pytest.raises(TokenExchangeConfigurationError):
        acquire_token_on_behalf_of("user-token", ARM_SCOPES, "Azure Management API")
