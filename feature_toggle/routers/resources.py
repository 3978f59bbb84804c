"""App Configuration resource registry routes."""
from __future__ import annotations

import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..clients import ResourceManagerClient
from ..config import get_settings
from ..database import get_session
from ..models import User
from ..schemas import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    DiscoveredResourceResponse,
    ResourceCreateRequest,
    ResourceDeleteResponse,
    ResourceResponse,
    ResourceUpdateRequest,
    SubscriptionSummary,
)
from ..services import (
    AppConfigConnector,
    check_connection,
    create_resource,
    delete_resource,
    discover_resources,
    get_app_config_connector,
    get_bearer_token,
    get_current_user,
    get_management_token,
    get_resource_or_404,
    list_resources,
    list_subscriptions,
    require_resource_manager,
    to_resource_response,
    update_resource,
)

router = APIRouter(prefix="/api/resources", tags=["resources"])


async def _resource_manager_client(token: str | None) -> ResourceManagerClient:
    access_token = await asyncio.to_thread(get_management_token, token)
    return ResourceManagerClient(access_token, timeout=get_settings().azure_http_timeout)


@router.get("", response_model=list[ResourceResponse])
async def list_resources_endpoint(
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> list[ResourceResponse]:
    return [to_resource_response(resource) for resource in list_resources(db)]


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource_endpoint(
    payload: ResourceCreateRequest,
    _: User = Depends(require_resource_manager),
    db: Session = Depends(get_session),
) -> ResourceResponse:
    return to_resource_response(create_resource(db, payload))


@router.post("/test-connection", response_model=ConnectionTestResponse)
def connection_test_endpoint(
    payload: ConnectionTestRequest,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    connector: AppConfigConnector = Depends(get_app_config_connector),
) -> ConnectionTestResponse:
    result = check_connection(db, connector, payload)
    return ConnectionTestResponse(success=result.success, message=result.message, timestamp=result.timestamp)


@router.get("/subscriptions", response_model=list[SubscriptionSummary])
async def list_subscriptions_endpoint(
    _: User = Depends(get_current_user),
    token: str | None = Depends(get_bearer_token),
) -> list[SubscriptionSummary]:
    client = await _resource_manager_client(token)
    return await list_subscriptions(client)


@router.get("/discover", response_model=list[DiscoveredResourceResponse])
async def discover_resources_endpoint(
    _: User = Depends(get_current_user),
    token: str | None = Depends(get_bearer_token),
) -> list[DiscoveredResourceResponse]:
    client = await _resource_manager_client(token)
    return await discover_resources(client)


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource_endpoint(
    resource_id: UUID,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ResourceResponse:
    return to_resource_response(get_resource_or_404(db, resource_id))


@router.put("/{resource_id}", response_model=ResourceResponse)
async def update_resource_endpoint(
    resource_id: UUID,
    payload: ResourceUpdateRequest,
    _: User = Depends(require_resource_manager),
    db: Session = Depends(get_session),
) -> ResourceResponse:
    return to_resource_response(update_resource(db, resource_id, payload))


@router.delete("/{resource_id}", response_model=ResourceDeleteResponse)
async def delete_resource_endpoint(
    resource_id: UUID,
    _: User = Depends(require_resource_manager),
    db: Session = Depends(get_session),
) -> ResourceDeleteResponse:
    delete_resource(db, resource_id)
    return ResourceDeleteResponse()
