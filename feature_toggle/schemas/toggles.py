"""Schemas for feature toggle listing and mutation."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ToggleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    resource_id: UUID
    key: str
    label: str
    name: str
    description: str | None = None
    enabled: bool
    last_modified_by: str | None = None
    last_modified_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ToggleUpdateRequest(BaseModel):
    # None flips the current remote state.
    enabled: bool | None = None


__all__ = ["ToggleResponse", "ToggleUpdateRequest"]
