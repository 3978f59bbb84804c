"""On-Behalf-Of exchange of the caller's API token for downstream Azure tokens.

The browser only holds a token for this API. Calls into Azure Resource
Manager and App Configuration need tokens for those audiences, which a
confidential client (client id + secret) obtains through MSAL's OBO grant.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

import msal
from azure.core.credentials import AccessToken

from ..config import get_settings
from ..constants import APP_CONFIG_SCOPES, ARM_SCOPES
from ..security.secrets import MissingSecretError, require_secret

logger = logging.getLogger(__name__)

_CONSENT_ERRORS = {"interaction_required", "consent_required", "invalid_grant"}


class TokenExchangeError(RuntimeError):
    """Raised when the user's token cannot be exchanged (maps to 401)."""


class TokenExchangeConfigurationError(RuntimeError):
    """Raised when the confidential client is not configured (maps to 500)."""


@dataclass(frozen=True)
class ExchangedToken:
    access_token: str
    expires_on: int


class StaticTokenCredential:
    """azure-core credential that hands out an already acquired token."""

    def __init__(self, token: ExchangedToken) -> None:
        self._token = token

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        return AccessToken(self._token.access_token, self._token.expires_on)


@lru_cache(maxsize=1)
def _get_confidential_client() -> msal.ConfidentialClientApplication:
    settings = get_settings()
    try:
        client_id = require_secret("AZURE_AD_CLIENT_ID", settings.azure_ad_client_id or "")
        client_secret = require_secret("AZURE_AD_CLIENT_SECRET", settings.azure_ad_client_secret or "")
    except MissingSecretError as exc:
        logger.error("Azure AD client id or secret not configured; the OBO flow requires both")
        raise TokenExchangeConfigurationError(
            "Azure AD ClientId or ClientSecret not configured. The OBO flow requires a client secret."
        ) from exc

    return msal.ConfidentialClientApplication(
        client_id,
        authority=settings.authority,
        client_credential=client_secret,
    )


def acquire_token_on_behalf_of(
    user_assertion: str | None,
    scopes: Sequence[str],
    resource_label: str,
) -> ExchangedToken:
    """Exchange ``user_assertion`` for a token carrying ``scopes``."""

    if not user_assertion:
        logger.error("No user token found for OBO flow to %s", resource_label)
        raise TokenExchangeError("User token is required for authentication")

    app = _get_confidential_client()
    logger.info("Acquiring token for %s using OBO flow with scopes: %s", resource_label, ", ".join(scopes))

    try:
        result = app.acquire_token_on_behalf_of(user_assertion=user_assertion, scopes=list(scopes))
    except Exception:
        logger.exception("Failed to acquire token via OBO flow for %s", resource_label)
        raise

    if result and "access_token" in result:
        expires_in = int(result.get("expires_in") or 3600)
        logger.info("Acquired %s token via OBO (expires in %ss)", resource_label, expires_in)
        return ExchangedToken(access_token=result["access_token"], expires_on=int(time.time()) + expires_in)

    error = (result or {}).get("error")
    description = (result or {}).get("error_description") or error or "unknown error"
    if error in _CONSENT_ERRORS:
        logger.warning("User needs to consent for %s access. Error: %s", resource_label, error)
        raise TokenExchangeError(f"Additional consent required for {resource_label}. Please sign in again.")

    logger.error("MSAL rejected OBO exchange for %s: %s - %s", resource_label, error, description)
    raise TokenExchangeError(f"Failed to acquire token for {resource_label}: {description}")


def get_management_token(user_assertion: str | None) -> str:
    return acquire_token_on_behalf_of(user_assertion, ARM_SCOPES, "Azure Management API").access_token


def get_app_config_credential(user_assertion: str | None) -> StaticTokenCredential:
    token = acquire_token_on_behalf_of(user_assertion, APP_CONFIG_SCOPES, "Azure App Configuration")
    return StaticTokenCredential(token)


__all__ = [
    "ExchangedToken",
    "StaticTokenCredential",
    "TokenExchangeConfigurationError",
    "TokenExchangeError",
    "acquire_token_on_behalf_of",
    "get_app_config_credential",
    "get_management_token",
]
