"""Health and public configuration routes."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from ..config import get_settings
from ..database import ping_database
from ..schemas import HealthResponse, PublicAuthConfig

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_endpoint() -> HealthResponse:
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_endpoint() -> HealthResponse:
    try:
        ping_database()
    except SQLAlchemyError as exc:
        logger.warning("Readiness check failed: database unreachable")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable") from exc
    return HealthResponse(status="ready", timestamp=datetime.now(timezone.utc))


@router.get("/config", response_model=PublicAuthConfig)
async def public_config_endpoint() -> PublicAuthConfig:
    """Values the single-page client needs to start a sign-in; never secrets."""

    settings = get_settings()
    return PublicAuthConfig(
        client_id=settings.azure_ad_client_id,
        tenant_id=settings.azure_ad_tenant_id,
        authority=settings.authority,
    )
