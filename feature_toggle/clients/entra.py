"""Signing key retrieval for Azure AD (Entra ID) access tokens."""
from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class SigningKeyError(RuntimeError):
    """Raised when the tenant signing keys cannot be fetched or matched."""


MIN_REFETCH_INTERVAL = 60.0


class EntraKeySet:
    """JWKS cache keyed by ``kid`` with a time-based refresh."""

    def __init__(self, *, ttl_seconds: int, timeout: float, min_refetch_interval: float = MIN_REFETCH_INTERVAL) -> None:
        self._ttl_seconds = ttl_seconds
        self._min_refetch_interval = min_refetch_interval
        self._timeout = timeout
        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at: float = 0.0

    @staticmethod
    def jwks_url() -> str:
        settings = get_settings()
        return f"{settings.authority}/discovery/v2.0/keys"

    def _is_fresh(self) -> bool:
        return bool(self._keys) and (time.monotonic() - self._fetched_at) < self._ttl_seconds

    async def _refresh(self) -> None:
        url = self.jwks_url()
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            logger.exception("Failed to fetch signing keys from %s", url)
            raise SigningKeyError("Unable to fetch signing keys") from exc

        keys = data.get("keys") if isinstance(data, dict) else None
        if not isinstance(keys, list):
            raise SigningKeyError("Signing key document is malformed")

        self._keys = {key["kid"]: key for key in keys if isinstance(key, dict) and key.get("kid")}
        self._fetched_at = time.monotonic()
        logger.info("Cached %d signing keys", len(self._keys))

    async def get_key(self, kid: str) -> dict[str, Any]:
        if not self._is_fresh():
            await self._refresh()
        key = self._keys.get(kid)
        if key is None and (time.monotonic() - self._fetched_at) >= self._min_refetch_interval:
            # Keys rotate; refetch at most once per interval for unknown kids.
            await self._refresh()
            key = self._keys.get(kid)
        if key is None:
            raise SigningKeyError(f"Unable to find signing key with kid {kid}")
        return key


_key_set: EntraKeySet | None = None


def get_key_set() -> EntraKeySet:
    global _key_set
    if _key_set is None:
        settings = get_settings()
        _key_set = EntraKeySet(ttl_seconds=settings.jwks_cache_ttl, timeout=settings.azure_http_timeout)
    return _key_set


__all__ = ["EntraKeySet", "SigningKeyError", "get_key_set"]
