"""SQLAlchemy ORM model for the local cache of remote feature flags."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from feature_toggle.database import Base
from .base import TimestampMixin


class FeatureToggle(TimestampMixin, Base):
    __tablename__ = "feature_toggles"
    __table_args__ = (UniqueConstraint("resource_id", "key", "label", name="uq_feature_toggles_resource_key_label"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    resource_id = Column(
        UUID(as_uuid=True),
        ForeignKey("app_config_resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Full remote key including the ".appconfig.featureflag/" prefix.
    key = Column(String(512), nullable=False)
    # Empty string stands for the null label.
    label = Column(String(255), nullable=False, server_default="", default="")
    name = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, server_default=expression.false(), default=False)
    last_modified_by = Column(String(255), nullable=True)
    last_modified_at = Column(DateTime(timezone=True), nullable=True)

    resource = relationship("AppConfigResource", back_populates="toggles")


__all__ = ["FeatureToggle"]
