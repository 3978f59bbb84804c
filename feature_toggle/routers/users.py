"""Admin-only user management routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import RoleUpdateRequest, UserListResponse, UserProfileResponse
from ..services import list_users, require_admin, set_user_role

router = APIRouter(prefix="/api/users", tags=["users"])

_require_admin = require_admin("Admin access required to manage users")


@router.get("", response_model=UserListResponse)
async def list_users_endpoint(
    _: User = Depends(_require_admin),
    db: Session = Depends(get_session),
) -> UserListResponse:
    total, users = list_users(db)
    return UserListResponse(total=total, items=[UserProfileResponse.model_validate(user) for user in users])


@router.patch("/{user_id}/role", response_model=UserProfileResponse)
async def update_user_role_endpoint(
    user_id: UUID,
    payload: RoleUpdateRequest,
    current_user: User = Depends(_require_admin),
    db: Session = Depends(get_session),
) -> UserProfileResponse:
    user = set_user_role(db, actor=current_user, user_id=user_id, role=payload.role)
    return UserProfileResponse.model_validate(user)
