"""Schemas for the signed-in user and role management."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..constants import UserRole


class UserProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: UserRole
    created_at: datetime | None = None
    last_active_at: datetime | None = None


class UserListResponse(BaseModel):
    total: int
    items: list[UserProfileResponse]


class RoleUpdateRequest(BaseModel):
    role: UserRole


__all__ = ["UserProfileResponse", "UserListResponse", "RoleUpdateRequest"]
