"""Project-wide constant values."""
from __future__ import annotations

from typing import Literal

ROLE_READ_ONLY = "read-only"
ROLE_ADMIN = "admin"

ENVIRONMENT_DEVELOPMENT = "development"
ENVIRONMENT_STAGING = "staging"
ENVIRONMENT_PRODUCTION = "production"
ENVIRONMENT_TYPES = (ENVIRONMENT_DEVELOPMENT, ENVIRONMENT_STAGING, ENVIRONMENT_PRODUCTION)

CONNECTION_UNKNOWN = "unknown"
CONNECTION_CONNECTED = "connected"
CONNECTION_ERROR = "error"

ACTION_ENABLED = "enabled"
ACTION_DISABLED = "disabled"

FEATURE_FLAG_PREFIX = ".appconfig.featureflag/"
FEATURE_FLAG_CONTENT_TYPE = "application/vnd.microsoft.appconfig.ff+json;charset=utf-8"

ARM_SCOPES = ("https://management.azure.com/user_impersonation",)
APP_CONFIG_SCOPES = ("https://azconfig.io/KeyValue.Read", "https://azconfig.io/KeyValue.Write")

TOGGLE_ADMIN_DETAIL = "Admin access required to modify toggles"
RESOURCE_ADMIN_DETAIL = "Admin access required to manage resources"

UserRole = Literal["read-only", "admin"]
EnvironmentType = Literal["development", "staging", "production"]
ConnectionStatus = Literal["unknown", "connected", "error"]
ToggleAction = Literal["enabled", "disabled"]

__all__ = [
    "ROLE_READ_ONLY",
    "ROLE_ADMIN",
    "ENVIRONMENT_DEVELOPMENT",
    "ENVIRONMENT_STAGING",
    "ENVIRONMENT_PRODUCTION",
    "ENVIRONMENT_TYPES",
    "CONNECTION_UNKNOWN",
    "CONNECTION_CONNECTED",
    "CONNECTION_ERROR",
    "ACTION_ENABLED",
    "ACTION_DISABLED",
    "FEATURE_FLAG_PREFIX",
    "FEATURE_FLAG_CONTENT_TYPE",
    "ARM_SCOPES",
    "APP_CONFIG_SCOPES",
    "TOGGLE_ADMIN_DETAIL",
    "RESOURCE_ADMIN_DETAIL",
    "UserRole",
    "EnvironmentType",
    "ConnectionStatus",
    "ToggleAction",
]
