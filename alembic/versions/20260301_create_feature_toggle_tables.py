"""Create users, resources, feature toggle cache and audit log tables.

Revision ID: 20260301_create_feature_toggle_tables
Revises:
Create Date: 2026-03-01
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260301_create_feature_toggle_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("external_id", sa.String(length=255), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="read-only"),
        sa.Column("last_active_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_external_id", "users", ["external_id"], unique=True)

    op.create_table(
        "app_config_resources",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("environment_type", sa.String(length=32), nullable=False, server_default="development"),
        sa.Column("resource_name", sa.String(length=255), nullable=False),
        sa.Column("resource_group", sa.String(length=255), nullable=False),
        sa.Column("subscription_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("endpoint", sa.String(length=1024), nullable=True),
        sa.Column("connection_string", sa.Text(), nullable=True),
        sa.Column("connection_status", sa.String(length=32), nullable=False, server_default="unknown"),
        sa.Column("last_tested", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_app_config_resources_environment_type", "app_config_resources", ["environment_type"])

    op.create_table(
        "feature_toggles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "resource_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("app_config_resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("key", sa.String(length=512), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_modified_by", sa.String(length=255), nullable=True),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("resource_id", "key", "label", name="uq_feature_toggles_resource_key_label"),
    )
    op.create_index("ix_feature_toggles_resource_id", "feature_toggles", ["resource_id"])

    op.create_table(
        "audit_log_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("toggle_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("toggle_name", sa.String(length=512), nullable=False),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("resource_name", sa.String(length=255), nullable=False),
        sa.Column("environment_type", sa.String(length=32), nullable=False),
        sa.Column("previous_state", sa.Boolean(), nullable=False),
        sa.Column("new_state", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_audit_log_entries_timestamp", "audit_log_entries", ["timestamp"])
    op.create_index("ix_audit_log_entries_user_id", "audit_log_entries", ["user_id"])
    op.create_index("ix_audit_log_entries_action", "audit_log_entries", ["action"])
    op.create_index("ix_audit_log_entries_resource_id", "audit_log_entries", ["resource_id"])
    op.create_index("ix_audit_log_entries_environment_type", "audit_log_entries", ["environment_type"])


def downgrade() -> None:
    op.drop_index("ix_audit_log_entries_environment_type", table_name="audit_log_entries")
    op.drop_index("ix_audit_log_entries_resource_id", table_name="audit_log_entries")
    op.drop_index("ix_audit_log_entries_action", table_name="audit_log_entries")
    op.drop_index("ix_audit_log_entries_user_id", table_name="audit_log_entries")
    op.drop_index("ix_audit_log_entries_timestamp", table_name="audit_log_entries")
    op.drop_table("audit_log_entries")
    op.drop_index("ix_feature_toggles_resource_id", table_name="feature_toggles")
    op.drop_table("feature_toggles")
    op.drop_index("ix_app_config_resources_environment_type", table_name="app_config_resources")
    op.drop_table("app_config_resources")
    op.drop_index("ix_users_external_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
