"""Schemas for audit log browsing and export."""
from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import EnvironmentType, ToggleAction


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class AuditLogFilters(BaseModel):
    resource_id: UUID | None = None
    user_id: UUID | None = None
    environment_type: str | None = None
    action: str | None = None
    toggle_name: str | None = None
    date_range: str = "last7days"

    @field_validator("environment_type", "action", "toggle_name", mode="before")
    @classmethod
    def normalize_optional(cls, value: object) -> object:
        return _blank_to_none(value)


class AuditLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    timestamp: datetime
    user_id: UUID
    user_name: str
    user_email: str
    action: ToggleAction
    toggle_id: UUID
    toggle_name: str
    resource_id: UUID
    resource_name: str
    environment_type: EnvironmentType
    previous_state: bool
    new_state: bool


class AuditLogListResponse(BaseModel):
    logs: list[AuditLogEntryResponse]
    total_count: int
    has_more: bool
    limit: int
    offset: int


class AuditLogExportRequest(BaseModel):
    format: Literal["csv", "json"] = "csv"
    filters: AuditLogFilters = Field(default_factory=AuditLogFilters)


class AuditLogExportRow(BaseModel):
    timestamp: datetime
    user: str
    email: str
    action: str
    toggle_name: str
    resource_name: str
    environment: str
    previous_state: str
    new_state: str


__all__ = [
    "AuditLogEntryResponse",
    "AuditLogExportRequest",
    "AuditLogExportRow",
    "AuditLogFilters",
    "AuditLogListResponse",
]
