"""Audit log browsing and export routes."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import AuditLogEntryResponse, AuditLogExportRequest, AuditLogFilters, AuditLogListResponse
from ..services import export_audit_logs, get_current_user, list_audit_logs, render_csv, to_export_row
from ..services.audit_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter(prefix="/api/audit-logs", tags=["audit"])


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs_endpoint(
    resource_id: UUID | None = None,
    user_id: UUID | None = None,
    environment_type: str | None = None,
    action: str | None = None,
    toggle_name: str | None = None,
    date_range: str = "last7days",
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> AuditLogListResponse:
    filters = AuditLogFilters(
        resource_id=resource_id,
        user_id=user_id,
        environment_type=environment_type,
        action=action,
        toggle_name=toggle_name,
        date_range=date_range,
    )
    total, entries = list_audit_logs(db, filters, limit=limit, offset=offset)
    return AuditLogListResponse(
        logs=[AuditLogEntryResponse.model_validate(entry) for entry in entries],
        total_count=total,
        has_more=offset + len(entries) < total,
        limit=limit,
        offset=offset,
    )


@router.post("/export")
async def export_audit_logs_endpoint(
    payload: AuditLogExportRequest,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Response:
    rows = [to_export_row(entry) for entry in export_audit_logs(db, payload.filters)]
    filename = f"audit-log-{datetime.now(timezone.utc):%Y-%m-%d}.{payload.format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if payload.format == "json":
        return JSONResponse(content=[row.model_dump(mode="json") for row in rows], headers=headers)
    return Response(content=render_csv(rows), media_type="text/csv", headers=headers)
