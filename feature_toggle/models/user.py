"""SQLAlchemy ORM model for application users."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from feature_toggle.database import Base
from .base import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Azure AD object id ("oid") or subject of the first token seen for this user.
    external_id = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(32), nullable=False, server_default="read-only", default="read-only")
    last_active_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


__all__ = ["User"]
