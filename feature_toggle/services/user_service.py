"""User administration."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import User

logger = logging.getLogger(__name__)


def list_users(db: Session) -> tuple[int, list[User]]:
    total = int(db.scalar(select(func.count()).select_from(User)) or 0)
    users = db.scalars(select(User).order_by(User.created_at.asc())).all()
    return total, list(users)


def set_user_role(db: Session, *, actor: User, user_id: UUID, role: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    user.role = role
    try:
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update role for %s", user.email)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update role") from exc

    logger.info("User %s set role of %s to %s", actor.email, user.email, role)
    return user


__all__ = ["list_users", "set_user_role"]
