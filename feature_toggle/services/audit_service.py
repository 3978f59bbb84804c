"""Recording, querying and exporting the toggle audit trail."""
from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from ..constants import ACTION_DISABLED, ACTION_ENABLED, ENVIRONMENT_TYPES
from ..models import AppConfigResource, AuditLogEntry, FeatureToggle, User
from ..schemas import AuditLogExportRow, AuditLogFilters

DATE_RANGE_DAYS = {"last7days": 7, "last30days": 30, "last90days": 90}
DEFAULT_DATE_RANGE_DAYS = 7
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

EXPORT_HEADER = [
    "Timestamp",
    "User",
    "Email",
    "Action",
    "Toggle Name",
    "Resource",
    "Environment",
    "Previous State",
    "New State",
]


def resolve_cutoff(date_range: str | None, now: datetime | None = None) -> datetime:
    """Return the lower timestamp bound for ``date_range``; unknown ranges mean seven days."""

    now = now or datetime.now(timezone.utc)
    days = DATE_RANGE_DAYS.get((date_range or "").strip(), DEFAULT_DATE_RANGE_DAYS)
    return now - timedelta(days=days)


def record_toggle_change(
    db: Session,
    *,
    actor: User,
    toggle: FeatureToggle,
    resource: AppConfigResource,
    previous_state: bool,
    new_state: bool,
) -> AuditLogEntry:
    """Stage one audit row; the caller commits it with the toggle update."""

    entry = AuditLogEntry(
        timestamp=datetime.now(timezone.utc),
        user_id=actor.id,
        user_name=actor.name or actor.email,
        user_email=actor.email,
        action=ACTION_ENABLED if new_state else ACTION_DISABLED,
        toggle_id=toggle.id,
        toggle_name=toggle.name,
        resource_id=resource.id,
        resource_name=resource.display_name,
        environment_type=resource.environment_type,
        previous_state=previous_state,
        new_state=new_state,
    )
    db.add(entry)
    return entry


def _apply_filters(query: Select, filters: AuditLogFilters, now: datetime | None) -> Select:
    if filters.resource_id:
        query = query.where(AuditLogEntry.resource_id == filters.resource_id)
    if filters.user_id:
        query = query.where(AuditLogEntry.user_id == filters.user_id)

    environment = (filters.environment_type or "").lower()
    if environment in ENVIRONMENT_TYPES:
        query = query.where(AuditLogEntry.environment_type == environment)

    action = (filters.action or "").lower()
    if action in (ACTION_ENABLED, ACTION_DISABLED):
        query = query.where(AuditLogEntry.action == action)

    if filters.toggle_name:
        query = query.where(AuditLogEntry.toggle_name.icontains(filters.toggle_name, autoescape=True))

    return query.where(AuditLogEntry.timestamp >= resolve_cutoff(filters.date_range, now))


def list_audit_logs(
    db: Session,
    filters: AuditLogFilters,
    *,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    now: datetime | None = None,
) -> tuple[int, list[AuditLogEntry]]:
    safe_limit = max(1, min(int(limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE))
    safe_offset = max(0, int(offset or 0))

    filtered = _apply_filters(select(AuditLogEntry), filters, now)
    total = int(db.scalar(select(func.count()).select_from(filtered.subquery())) or 0)
    rows = db.scalars(
        filtered.order_by(AuditLogEntry.timestamp.desc()).offset(safe_offset).limit(safe_limit)
    ).all()
    return total, list(rows)


def export_audit_logs(db: Session, filters: AuditLogFilters, *, now: datetime | None = None) -> list[AuditLogEntry]:
    """All rows matching ``filters``, newest first, without pagination."""

    query = _apply_filters(select(AuditLogEntry), filters, now).order_by(AuditLogEntry.timestamp.desc())
    return list(db.scalars(query).all())


def _state_label(state: bool) -> str:
    return ACTION_ENABLED if state else ACTION_DISABLED


def to_export_row(entry: AuditLogEntry) -> AuditLogExportRow:
    return AuditLogExportRow(
        timestamp=entry.timestamp,
        user=entry.user_name,
        email=entry.user_email,
        action=entry.action,
        toggle_name=entry.toggle_name,
        resource_name=entry.resource_name,
        environment=entry.environment_type,
        previous_state=_state_label(entry.previous_state),
        new_state=_state_label(entry.new_state),
    )


def render_csv(rows: Iterable[AuditLogExportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for row in rows:
        writer.writerow(
            [
                row.timestamp.isoformat(),
                row.user,
                row.email,
                row.action,
                row.toggle_name,
                row.resource_name,
                row.environment,
                row.previous_state,
                row.new_state,
            ]
        )
    return buffer.getvalue()


__all__ = [
    "DATE_RANGE_DAYS",
    "EXPORT_HEADER",
    "export_audit_logs",
    "list_audit_logs",
    "record_toggle_change",
    "render_csv",
    "resolve_cutoff",
    "to_export_row",
]
