"""Convenience exports for service layer."""
from .audit_service import export_audit_logs, list_audit_logs, record_toggle_change, render_csv, to_export_row
from .auth_service import (
    create_access_token,
    decode_access_token,
    get_bearer_token,
    get_current_user,
    require_admin,
    require_resource_manager,
    require_roles,
)
from .discovery_service import detect_environment_type, discover_resources, extract_resource_group, list_subscriptions
from .resource_service import (
    check_connection,
    create_resource,
    delete_resource,
    get_resource_or_404,
    list_resources,
    to_resource_response,
    update_resource,
)
from .store_service import AppConfigConnector, ResourceConfigurationError, get_app_config_connector
from .toggle_service import list_toggles, set_toggle_state, sync_toggles
from .token_exchange import (
    TokenExchangeConfigurationError,
    TokenExchangeError,
    acquire_token_on_behalf_of,
    get_app_config_credential,
    get_management_token,
)
from .user_service import list_users, set_user_role

__all__ = [
    "AppConfigConnector",
    "ResourceConfigurationError",
    "TokenExchangeConfigurationError",
    "TokenExchangeError",
    "acquire_token_on_behalf_of",
    "check_connection",
    "create_access_token",
    "create_resource",
    "decode_access_token",
    "delete_resource",
    "detect_environment_type",
    "discover_resources",
    "export_audit_logs",
    "extract_resource_group",
    "get_app_config_connector",
    "get_app_config_credential",
    "get_bearer_token",
    "get_current_user",
    "get_management_token",
    "get_resource_or_404",
    "list_audit_logs",
    "list_resources",
    "list_subscriptions",
    "list_toggles",
    "list_users",
    "record_toggle_change",
    "render_csv",
    "require_admin",
    "require_resource_manager",
    "require_roles",
    "set_toggle_state",
    "set_user_role",
    "sync_toggles",
    "to_export_row",
    "to_resource_response",
    "update_resource",
]
