"""Routes describing the signed-in user."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..models import User
from ..schemas import UserProfileResponse
from ..services import get_current_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me", response_model=UserProfileResponse)
async def me_endpoint(current_user: User = Depends(get_current_user)) -> UserProfileResponse:
    return UserProfileResponse.model_validate(current_user)
