from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.audit import AuditLogEntry, AuditLogListResponse
from passport_tracker.services import audit, authz

router = APIRouter(prefix="/admin/audit-logs", tags=["audit-logs"])


@router.get("", response_model=AuditLogListResponse, summary="List audit log entries")
async def list_audit_logs(
    actor_id: UUID | None = Query(default=None),
    action: str | None = Query(default=None),
    entity: str | None = Query(default=None),
    record_id: str | None = Query(default=None),
    created_from: datetime | None = Query(default=None),
    created_to: datetime | None = Query(default=None),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    authz.require(actor, Operation.AUDIT_LOG_VIEW)
    items, total = await audit.list_audit_logs(
        db,
        limit=limit,
        offset=offset,
        actor_id=actor_id,
        action=action,
        entity=entity,
        record_id=record_id,
        created_from=created_from,
        created_to=created_to,
    )
    return AuditLogListResponse(
        items=[AuditLogEntry.model_validate(item) for item in items], total=total
    )
