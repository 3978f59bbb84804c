"""Outbound clients for Azure services."""
from .app_configuration import (
    ConnectionTestResult,
    FeatureFlagNotFoundError,
    FeatureFlagStoreError,
    RemoteFeatureFlag,
    get_feature_flag,
    list_feature_flags,
    probe_connection,
    write_feature_flag_state,
)
from .entra import EntraKeySet, SigningKeyError, get_key_set
from .resource_manager import ResourceManagerClient, ResourceManagerError

__all__ = [
    "ConnectionTestResult",
    "EntraKeySet",
    "FeatureFlagNotFoundError",
    "FeatureFlagStoreError",
    "RemoteFeatureFlag",
    "ResourceManagerClient",
    "ResourceManagerError",
    "SigningKeyError",
    "get_feature_flag",
    "get_key_set",
    "list_feature_flags",
    "probe_connection",
    "write_feature_flag_state",
]
