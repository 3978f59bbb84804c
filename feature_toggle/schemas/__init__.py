"""Convenience exports for schema layer."""
from .audit_logs import (
    AuditLogEntryResponse,
    AuditLogExportRequest,
    AuditLogExportRow,
    AuditLogFilters,
    AuditLogListResponse,
)
from .resources import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    DiscoveredResourceResponse,
    ResourceCreateRequest,
    ResourceDeleteResponse,
    ResourceResponse,
    ResourceUpdateRequest,
    SubscriptionSummary,
)
from .system import HealthResponse, PublicAuthConfig
from .toggles import ToggleResponse, ToggleUpdateRequest
from .users import RoleUpdateRequest, UserListResponse, UserProfileResponse

__all__ = [
    "AuditLogEntryResponse",
    "AuditLogExportRequest",
    "AuditLogExportRow",
    "AuditLogFilters",
    "AuditLogListResponse",
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "DiscoveredResourceResponse",
    "HealthResponse",
    "PublicAuthConfig",
    "ResourceCreateRequest",
    "ResourceDeleteResponse",
    "ResourceResponse",
    "ResourceUpdateRequest",
    "RoleUpdateRequest",
    "SubscriptionSummary",
    "ToggleResponse",
    "ToggleUpdateRequest",
    "UserListResponse",
    "UserProfileResponse",
]
