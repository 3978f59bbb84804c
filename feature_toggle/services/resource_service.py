"""Services for registering and inspecting App Configuration resources."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..clients.app_configuration import ConnectionTestResult, probe_connection
from ..constants import CONNECTION_CONNECTED, CONNECTION_ERROR, CONNECTION_UNKNOWN, ENVIRONMENT_PRODUCTION
from ..models import AppConfigResource
from ..schemas import ConnectionTestRequest, ResourceCreateRequest, ResourceResponse, ResourceUpdateRequest
from ..security.connection_strings import endpoint_from_connection_string, is_masked, mask_connection_string
from .store_service import AppConfigConnector, ResourceConfigurationError

logger = logging.getLogger(__name__)


def to_resource_response(resource: AppConfigResource) -> ResourceResponse:
    return ResourceResponse(
        id=resource.id,
        display_name=resource.display_name,
        environment_type=resource.environment_type,
        resource_name=resource.resource_name,
        resource_group=resource.resource_group,
        subscription_id=resource.subscription_id or "",
        endpoint=resource.endpoint,
        connection_string=mask_connection_string(resource.connection_string),
        connection_status=resource.connection_status,
        requires_confirmation=resource.environment_type == ENVIRONMENT_PRODUCTION,
        last_tested=resource.last_tested,
        created_at=resource.created_at,
        updated_at=resource.updated_at,
    )


def _commit(db: Session, resource: AppConfigResource, failure_detail: str) -> None:
    try:
        db.add(resource)
        db.commit()
        db.refresh(resource)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(failure_detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail) from exc


def list_resources(db: Session) -> list[AppConfigResource]:
    return list(db.scalars(select(AppConfigResource).order_by(AppConfigResource.created_at.desc())).all())


def get_resource_or_404(db: Session, resource_id: UUID) -> AppConfigResource:
    resource = db.get(AppConfigResource, resource_id)
    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return resource


def create_resource(db: Session, payload: ResourceCreateRequest) -> AppConfigResource:
    if payload.connection_string and is_masked(payload.connection_string):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Connection string is masked")

    resource = AppConfigResource(
        display_name=payload.display_name.strip(),
        environment_type=payload.environment_type,
        resource_name=payload.resource_name.strip(),
        resource_group=payload.resource_group.strip(),
        subscription_id=(payload.subscription_id or "").strip(),
        endpoint=payload.endpoint or endpoint_from_connection_string(payload.connection_string),
        connection_string=payload.connection_string,
        connection_status=CONNECTION_UNKNOWN,
    )
    _commit(db, resource, "Failed to create resource")
    logger.info("Registered resource %s (%s)", resource.display_name, resource.environment_type)
    return resource


def update_resource(db: Session, resource_id: UUID, payload: ResourceUpdateRequest) -> AppConfigResource:
    resource = get_resource_or_404(db, resource_id)

    if payload.display_name is not None:
        resource.display_name = payload.display_name.strip()
    if payload.environment_type is not None:
        resource.environment_type = payload.environment_type
    if payload.resource_name is not None:
        resource.resource_name = payload.resource_name.strip()
    if payload.resource_group is not None:
        resource.resource_group = payload.resource_group.strip()
    if payload.subscription_id is not None:
        resource.subscription_id = payload.subscription_id.strip()
    if payload.endpoint is not None:
        resource.endpoint = payload.endpoint
    if payload.connection_string and not is_masked(payload.connection_string):
        resource.connection_string = payload.connection_string
        resource.connection_status = CONNECTION_UNKNOWN
        if payload.endpoint is None:
            resource.endpoint = endpoint_from_connection_string(payload.connection_string) or resource.endpoint

    _commit(db, resource, "Failed to update resource")
    return resource


def delete_resource(db: Session, resource_id: UUID) -> None:
    resource = get_resource_or_404(db, resource_id)
    try:
        db.delete(resource)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete resource %s", resource_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete resource") from exc
    logger.info("Deleted resource %s", resource_id)


def check_connection(db: Session, connector: AppConfigConnector, payload: ConnectionTestRequest) -> ConnectionTestResult:
    """Probe a store and, for a registered resource, record the outcome."""

    resource = get_resource_or_404(db, payload.resource_id) if payload.resource_id else None

    connection_string = payload.connection_string
    if resource is not None and (not connection_string or is_masked(connection_string)):
        connection_string = resource.connection_string
    endpoint = payload.endpoint or (resource.endpoint if resource is not None else None)

    try:
        client = connector.client_for_location(connection_string=connection_string, endpoint=endpoint)
    except ResourceConfigurationError as exc:
        result = ConnectionTestResult(False, f"Connection failed: {exc}", datetime.now(timezone.utc))
    else:
        result = probe_connection(client)

    if resource is not None:
        resource.connection_status = CONNECTION_CONNECTED if result.success else CONNECTION_ERROR
        resource.last_tested = result.timestamp
        _commit(db, resource, "Failed to record connection status")

    logger.info("Connection test for %s: success=%s", resource.id if resource else endpoint or "ad-hoc", result.success)
    return result


__all__ = [
    "create_resource",
    "delete_resource",
    "get_resource_or_404",
    "list_resources",
    "check_connection",
    "to_resource_response",
    "update_resource",
]
