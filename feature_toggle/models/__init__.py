"""Convenience exports for ORM models."""
from .audit_log import AuditLogEntry
from .resource import AppConfigResource
from .toggle import FeatureToggle
from .user import User

__all__ = [
    "AppConfigResource",
    "AuditLogEntry",
    "FeatureToggle",
    "User",
]
