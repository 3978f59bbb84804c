"""SQLAlchemy ORM model for the append-only toggle audit trail."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from feature_toggle.database import Base


class AuditLogEntry(Base):
    __tablename__ = "audit_log_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    # Identities are copied rather than referenced so entries outlive deleted users, resources and toggles.
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=False)

    # "enabled" | "disabled"
    action = Column(String(16), nullable=False, index=True)

    toggle_id = Column(UUID(as_uuid=True), nullable=False)
    toggle_name = Column(String(512), nullable=False)
    resource_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    resource_name = Column(String(255), nullable=False)
    environment_type = Column(String(32), nullable=False, index=True)

    previous_state = Column(Boolean, nullable=False)
    new_state = Column(Boolean, nullable=False)


__all__ = ["AuditLogEntry"]
