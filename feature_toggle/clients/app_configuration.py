"""Thin helpers over ``azure-appconfiguration`` for feature flag settings.

Feature flags are ordinary configuration settings whose key starts with
``.appconfig.featureflag/`` and whose value is a JSON document carrying an
``enabled`` boolean next to the flag's conditions and description.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from azure.appconfiguration import AzureAppConfigurationClient, ConfigurationSetting
from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
)

from ..constants import FEATURE_FLAG_CONTENT_TYPE, FEATURE_FLAG_PREFIX

logger = logging.getLogger(__name__)


class FeatureFlagStoreError(RuntimeError):
    """Raised when the App Configuration store rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FeatureFlagNotFoundError(FeatureFlagStoreError):
    """Raised when a feature flag key does not exist in the store."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Feature flag {key} not found", status_code=404)
        self.key = key


@dataclass(frozen=True)
class RemoteFeatureFlag:
    key: str
    label: str | None
    name: str
    enabled: bool
    description: str | None
    last_modified: datetime | None
    content_type: str | None
    document: dict[str, Any]
    tags: dict[str, str] | None = None


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    message: str
    timestamp: datetime


def feature_name_from_key(key: str) -> str:
    if key.startswith(FEATURE_FLAG_PREFIX):
        return key[len(FEATURE_FLAG_PREFIX):]
    return key


def _load_document(key: str, raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        document = json.loads(raw)
    except ValueError:
        logger.warning("Feature flag %s holds a value that is not JSON; treating it as disabled", key)
        return {}
    if not isinstance(document, dict):
        logger.warning("Feature flag %s holds a non-object JSON value; treating it as disabled", key)
        return {}
    return document


def parse_feature_flag(setting: ConfigurationSetting) -> RemoteFeatureFlag:
    """Build a :class:`RemoteFeatureFlag` from a raw configuration setting."""

    document = _load_document(setting.key, setting.value)
    description = document.get("description")
    return RemoteFeatureFlag(
        key=setting.key,
        label=setting.label or None,
        name=feature_name_from_key(setting.key),
        enabled=document.get("enabled") is True,
        description=description if isinstance(description, str) and description else None,
        last_modified=setting.last_modified,
        content_type=setting.content_type,
        document=document,
        tags=setting.tags,
    )


def _wrap_error(action: str, exc: AzureError) -> FeatureFlagStoreError:
    status_code = getattr(exc, "status_code", None)
    if isinstance(exc, ClientAuthenticationError) and status_code is None:
        status_code = 401
    message = getattr(exc, "message", None) or str(exc)
    return FeatureFlagStoreError(f"Failed to {action}: {message}", status_code=status_code)


def list_feature_flags(client: AzureAppConfigurationClient) -> list[RemoteFeatureFlag]:
    """Return every feature flag setting in the store, across labels."""

    try:
        settings = client.list_configuration_settings(key_filter=f"{FEATURE_FLAG_PREFIX}*")
        return [parse_feature_flag(setting) for setting in settings]
    except AzureError as exc:
        logger.exception("Failed to list feature flags")
        raise _wrap_error("fetch feature flags", exc) from exc


def get_feature_flag(client: AzureAppConfigurationClient, key: str, label: str | None = None) -> RemoteFeatureFlag:
    try:
        setting = client.get_configuration_setting(key=key, label=label)
    except ResourceNotFoundError as exc:
        raise FeatureFlagNotFoundError(key) from exc
    except AzureError as exc:
        logger.exception("Failed to read feature flag %s", key)
        raise _wrap_error("read feature flag", exc) from exc
    if setting is None:
        raise FeatureFlagNotFoundError(key)
    return parse_feature_flag(setting)


def write_feature_flag_state(
    client: AzureAppConfigurationClient,
    flag: RemoteFeatureFlag,
    enabled: bool,
) -> RemoteFeatureFlag:
    """Persist ``flag`` with its ``enabled`` field replaced, keeping every other field."""

    document = dict(flag.document)
    document.setdefault("id", flag.name)
    document["enabled"] = bool(enabled)

    setting = ConfigurationSetting(
        key=flag.key,
        label=flag.label,
        value=json.dumps(document),
        content_type=flag.content_type or FEATURE_FLAG_CONTENT_TYPE,
        tags=flag.tags or {},
    )
    try:
        stored = client.set_configuration_setting(setting)
    except AzureError as exc:
        logger.exception("Failed to write feature flag %s", flag.key)
        raise _wrap_error("update feature flag", exc) from exc

    logger.info("Feature flag %s (label=%s) set to enabled=%s", flag.key, flag.label, enabled)
    return parse_feature_flag(stored) if stored is not None else flag


def probe_connection(client: AzureAppConfigurationClient) -> ConnectionTestResult:
    """Read the first page of settings to confirm the store is reachable."""

    now = datetime.now(timezone.utc)
    try:
        next(iter(client.list_configuration_settings(key_filter="*")), None)
    except HttpResponseError as exc:
        logger.warning("Connection test failed with status %s", exc.status_code)
        if exc.status_code == 403:
            message = "Connection failed: Access denied. Ensure you have proper RBAC permissions."
        elif exc.status_code == 401 or isinstance(exc, ClientAuthenticationError):
            message = "Connection failed: Invalid credentials. Check the connection string or sign in again."
        elif exc.status_code == 404:
            message = "Connection failed: Resource not found. Check the connection string."
        else:
            message = f"Connection failed: {exc.message or exc}"
        return ConnectionTestResult(False, message, now)
    except ServiceRequestError:
        logger.warning("Connection test could not reach the store", exc_info=True)
        return ConnectionTestResult(False, "Connection failed: Network error. Check your internet connection.", now)
    except AzureError as exc:
        logger.warning("Connection test failed", exc_info=True)
        return ConnectionTestResult(False, f"Connection failed: {exc}", now)

    return ConnectionTestResult(True, "Connection successful! Resource is accessible.", now)


__all__ = [
    "ConnectionTestResult",
    "FeatureFlagNotFoundError",
    "FeatureFlagStoreError",
    "RemoteFeatureFlag",
    "feature_name_from_key",
    "get_feature_flag",
    "list_feature_flags",
    "parse_feature_flag",
    "probe_connection",
    "write_feature_flag_state",
]
