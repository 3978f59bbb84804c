"""Feature toggle routes scoped to a registered resource."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ..constants import ROLE_ADMIN, TOGGLE_ADMIN_DETAIL
from ..database import get_session
from ..models import User
from ..schemas import ToggleResponse, ToggleUpdateRequest
from ..services import (
    AppConfigConnector,
    get_app_config_connector,
    get_current_user,
    list_toggles,
    require_roles,
    set_toggle_state,
)

router = APIRouter(prefix="/api/resources/{resource_id}/toggles", tags=["toggles"])

_require_toggle_admin = require_roles(ROLE_ADMIN, detail=TOGGLE_ADMIN_DETAIL)


# Store calls block, so these handlers run in the threadpool.
@router.get("", response_model=list[ToggleResponse])
def list_toggles_endpoint(
    resource_id: UUID,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    connector: AppConfigConnector = Depends(get_app_config_connector),
) -> list[ToggleResponse]:
    toggles = list_toggles(db, resource_id, connector)
    return [ToggleResponse.model_validate(toggle) for toggle in toggles]


@router.put("/{toggle_id}", response_model=ToggleResponse)
def update_toggle_endpoint(
    resource_id: UUID,
    toggle_id: UUID,
    payload: ToggleUpdateRequest | None = Body(default=None),
    current_user: User = Depends(_require_toggle_admin),
    db: Session = Depends(get_session),
    connector: AppConfigConnector = Depends(get_app_config_connector),
) -> ToggleResponse:
    toggle = set_toggle_state(
        db,
        resource_id=resource_id,
        toggle_id=toggle_id,
        actor=current_user,
        connector=connector,
        requested=payload.enabled if payload is not None else None,
    )
    return ToggleResponse.model_validate(toggle)
