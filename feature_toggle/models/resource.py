"""SQLAlchemy ORM model for registered App Configuration stores."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from feature_toggle.database import Base
from .base import TimestampMixin


class AppConfigResource(TimestampMixin, Base):
    __tablename__ = "app_config_resources"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    display_name = Column(String(255), nullable=False)

    # "development" | "staging" | "production"
    environment_type = Column(String(32), nullable=False, server_default="development", default="development", index=True)

    resource_name = Column(String(255), nullable=False)
    resource_group = Column(String(255), nullable=False)
    subscription_id = Column(String(64), nullable=False, server_default="", default="")
    endpoint = Column(String(1024), nullable=True)
    connection_string = Column(Text, nullable=True)

    # "unknown" | "connected" | "error"
    connection_status = Column(String(32), nullable=False, server_default="unknown", default="unknown")
    last_tested = Column(DateTime(timezone=True), nullable=True)

    toggles = relationship(
        "FeatureToggle",
        back_populates="resource",
        cascade="all, delete-orphan",
    )


__all__ = ["AppConfigResource"]
