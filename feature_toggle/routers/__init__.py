"""Aggregate router exports."""
from .audit_logs import router as audit_logs_router
from .auth import router as auth_router
from .resources import router as resources_router
from .system import router as system_router
from .toggles import router as toggles_router
from .users import router as users_router

__all__ = [
    "audit_logs_router",
    "auth_router",
    "resources_router",
    "system_router",
    "toggles_router",
    "users_router",
]
