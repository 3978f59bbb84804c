"""Schemas for App Configuration resource management."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import ConnectionStatus, EnvironmentType


def _lower(value: object) -> object:
    return value.strip().lower() if isinstance(value, str) else value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ResourceCreateRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)
    environment_type: EnvironmentType
    resource_name: str = Field(..., min_length=1, max_length=255)
    resource_group: str = Field(..., min_length=1, max_length=255)
    subscription_id: str | None = Field(default=None, max_length=64)
    endpoint: str | None = Field(default=None, max_length=1024)
    connection_string: str | None = None

    @field_validator("environment_type", mode="before")
    @classmethod
    def normalize_environment(cls, value: object) -> object:
        return _lower(value)

    @field_validator("subscription_id", "endpoint", "connection_string", mode="before")
    @classmethod
    def normalize_optional(cls, value: object) -> object:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _require_location(self) -> "ResourceCreateRequest":
        if not self.connection_string and not self.endpoint:
            raise ValueError("Either connection_string or endpoint is required")
        return self


class ResourceUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=255)
    environment_type: EnvironmentType | None = None
    resource_name: str | None = Field(default=None, min_length=1, max_length=255)
    resource_group: str | None = Field(default=None, min_length=1, max_length=255)
    subscription_id: str | None = Field(default=None, max_length=64)
    endpoint: str | None = Field(default=None, max_length=1024)
    # Omitted or still-masked values leave the stored connection string untouched.
    connection_string: str | None = None

    @field_validator("environment_type", mode="before")
    @classmethod
    def normalize_environment(cls, value: object) -> object:
        return _lower(value)

    @field_validator("subscription_id", "endpoint", "connection_string", mode="before")
    @classmethod
    def normalize_optional(cls, value: object) -> object:
        return _blank_to_none(value)


class ResourceResponse(BaseModel):
    id: UUID
    display_name: str
    environment_type: EnvironmentType
    resource_name: str
    resource_group: str
    subscription_id: str
    endpoint: str | None = None
    connection_string: str
    connection_status: ConnectionStatus
    requires_confirmation: bool
    last_tested: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ResourceDeleteResponse(BaseModel):
    success: bool = True
    message: str = "Resource deleted successfully"


class ConnectionTestRequest(BaseModel):
    connection_string: str | None = None
    endpoint: str | None = None
    resource_id: UUID | None = None

    @field_validator("connection_string", "endpoint", mode="before")
    @classmethod
    def normalize_optional(cls, value: object) -> object:
        return _blank_to_none(value)

    @model_validator(mode="after")
    def _require_target(self) -> "ConnectionTestRequest":
        if not (self.connection_string or self.endpoint or self.resource_id):
            raise ValueError("A connection string, endpoint or resource_id is required")
        return self


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str
    timestamp: datetime


class SubscriptionSummary(BaseModel):
    subscription_id: str
    name: str
    state: str


class DiscoveredResourceResponse(BaseModel):
    display_name: str
    resource_name: str
    resource_group: str
    subscription_id: str
    endpoint: str | None = None
    location: str
    environment_type: EnvironmentType
    tags: dict[str, str] = Field(default_factory=dict)


__all__ = [
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "DiscoveredResourceResponse",
    "ResourceCreateRequest",
    "ResourceDeleteResponse",
    "ResourceResponse",
    "ResourceUpdateRequest",
    "SubscriptionSummary",
]
