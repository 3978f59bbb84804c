"""Azure Resource Manager REST calls used for App Configuration discovery."""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)

ARM_BASE_URL = "https://management.azure.com"
SUBSCRIPTIONS_API_VERSION = "2022-12-01"
APP_CONFIGURATION_API_VERSION = "2023-03-01"


class ResourceManagerError(RuntimeError):
    """Raised when an ARM request fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResourceManagerClient:
    """Minimal async ARM client authenticated with a delegated bearer token."""

    def __init__(self, access_token: str, *, timeout: float | None = None, base_url: str = ARM_BASE_URL) -> None:
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._timeout = timeout if timeout is not None else get_settings().azure_http_timeout
        self._base_url = base_url.rstrip("/")

    async def _paged(self, client: httpx.AsyncClient, url: str, params: dict[str, str] | None) -> AsyncIterator[dict[str, Any]]:
        next_url: str | None = url
        next_params = params
        while next_url:
            try:
                response = await client.get(next_url, params=next_params, headers=self._headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise ResourceManagerError(
                    f"ARM request failed with status {exc.response.status_code}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.HTTPError as exc:
                raise ResourceManagerError("ARM request failed") from exc

            payload = response.json()
            for item in payload.get("value", []) or []:
                yield item
            # nextLink already carries the api-version query string
            next_url = payload.get("nextLink")
            next_params = None

    async def list_subscriptions(self) -> list[dict[str, Any]]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return [
                item
                async for item in self._paged(
                    client,
                    f"{self._base_url}/subscriptions",
                    {"api-version": SUBSCRIPTIONS_API_VERSION},
                )
            ]

    async def list_configuration_stores(self, subscription_id: str) -> list[dict[str, Any]]:
        url = f"{self._base_url}/subscriptions/{subscription_id}/providers/Microsoft.AppConfiguration/configurationStores"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return [item async for item in self._paged(client, url, {"api-version": APP_CONFIGURATION_API_VERSION})]


__all__ = ["ResourceManagerClient", "ResourceManagerError"]
