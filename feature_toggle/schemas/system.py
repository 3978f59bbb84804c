"""Schemas for health and public configuration endpoints."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class PublicAuthConfig(BaseModel):
    client_id: str | None = None
    tenant_id: str | None = None
    authority: str


__all__ = ["HealthResponse", "PublicAuthConfig"]
