"""Feature toggle cache sync and audited state changes."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from azure.appconfiguration import AzureAppConfigurationClient
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..clients.app_configuration import (
    RemoteFeatureFlag,
    get_feature_flag,
    list_feature_flags,
    write_feature_flag_state,
)
from ..models import AppConfigResource, FeatureToggle, User
from .audit_service import record_toggle_change
from .resource_service import get_resource_or_404
from .store_service import AppConfigConnector

logger = logging.getLogger(__name__)


def _apply_remote(toggle: FeatureToggle, flag: RemoteFeatureFlag) -> None:
    toggle.name = flag.name
    toggle.enabled = flag.enabled
    toggle.description = flag.description
    if flag.last_modified is not None:
        toggle.last_modified_at = flag.last_modified


def _commit(db: Session, failure_detail: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(failure_detail)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail) from exc


def sync_toggles(
    db: Session,
    resource: AppConfigResource,
    client: AzureAppConfigurationClient,
) -> list[FeatureToggle]:
    """Refresh the cached toggles of ``resource`` from its store and return them by name."""

    remote_flags = list_feature_flags(client)

    existing = {
        (toggle.key, toggle.label or ""): toggle
        for toggle in db.scalars(select(FeatureToggle).where(FeatureToggle.resource_id == resource.id))
    }

    for flag in remote_flags:
        label = flag.label or ""
        toggle = existing.get((flag.key, label))
        if toggle is None:
            toggle = FeatureToggle(resource_id=resource.id, key=flag.key, label=label)
            db.add(toggle)
            existing[(flag.key, label)] = toggle
        _apply_remote(toggle, flag)

    _commit(db, "Failed to cache feature toggles")
    logger.info("Synced %d feature flags for resource %s", len(remote_flags), resource.id)

    return sorted(existing.values(), key=lambda toggle: (toggle.name.lower(), toggle.label or ""))


def list_toggles(db: Session, resource_id: UUID, connector: AppConfigConnector) -> list[FeatureToggle]:
    resource = get_resource_or_404(db, resource_id)
    client = connector.client_for(resource)
    return sync_toggles(db, resource, client)


def set_toggle_state(
    db: Session,
    *,
    resource_id: UUID,
    toggle_id: UUID,
    actor: User,
    connector: AppConfigConnector,
    requested: bool | None = None,
) -> FeatureToggle:
    """Flip one toggle in its store and record the change.

    The new state is always the negation of the state read from the store, so
    every audit row has ``previous_state != new_state``. When ``requested``
    already matches the store, the cache is refreshed and nothing is written.
    """

    resource = get_resource_or_404(db, resource_id)
    toggle = db.get(FeatureToggle, toggle_id)
    if toggle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Toggle not found")
    if toggle.resource_id != resource.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Toggle does not belong to this resource")

    client = connector.client_for(resource)
    current = get_feature_flag(client, toggle.key, toggle.label or None)
    previous_state = current.enabled

    if requested is not None and requested == previous_state:
        _apply_remote(toggle, current)
        _commit(db, "Failed to refresh feature toggle")
        state = "enabled" if previous_state else "disabled"
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Toggle is already {state}")

    new_state = not previous_state
    updated = write_feature_flag_state(client, current, new_state)

    toggle.name = updated.name
    toggle.enabled = new_state
    toggle.description = updated.description
    toggle.last_modified_by = actor.name or actor.email
    toggle.last_modified_at = datetime.now(timezone.utc)

    record_toggle_change(
        db,
        actor=actor,
        toggle=toggle,
        resource=resource,
        previous_state=previous_state,
        new_state=new_state,
    )
    _commit(db, "Failed to record toggle change")
    db.refresh(toggle)

    logger.info(
        "User %s set toggle %s on resource %s from %s to %s",
        actor.email,
        toggle.key,
        resource.id,
        previous_state,
        new_state,
    )
    return toggle


__all__ = ["list_toggles", "set_toggle_state", "sync_toggles"]
