from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Iterable

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.models.audit_log import AuditLog

AUDIT_SCHEMA_VERSION = 1

# Never copied into before/after payloads.
SENSITIVE_FIELDS = frozenset({"hashed_password", "reference1_aadhaar", "reference2_aadhaar"})


def serialize_for_audit(value: Any) -> Any:
    return jsonable_encoder(
        value,
        custom_encoder={
            Decimal: lambda v: str(v),
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
            time: lambda v: v.isoformat(),
            uuid.UUID: lambda v: str(v),
        },
    )


def model_snapshot(model: Any, *, exclude: Iterable[str] | None = None) -> dict[str, Any]:
    if model is None:
        return {}
    excluded = SENSITIVE_FIELDS | set(exclude or [])
    data: dict[str, Any] = {}
    for column in model.__table__.columns:
        name = column.name
        if name in excluded:
            continue
        data[name] = getattr(model, name)
    return serialize_for_audit(data)


def snapshot_entities(entities: dict[str, Any]) -> dict[str, Any]:
    """Snapshot named models (or lists of models) into one audit mapping."""
    payload: dict[str, Any] = {}
    for name, value in entities.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            payload[name] = [model_snapshot(item) for item in value]
        else:
            payload[name] = model_snapshot(value)
    return payload


def _diff_values(old: Any, new: Any, prefix: str = "") -> dict[str, dict[str, Any]]:
    changes: dict[str, dict[str, Any]] = {}
    if isinstance(old, dict) and isinstance(new, dict):
        for key in sorted(set(old.keys()) | set(new.keys())):
            path = f"{prefix}.{key}" if prefix else str(key)
            changes.update(_diff_values(old.get(key), new.get(key), path))
        return changes
    if old != new:
        changes[prefix or "value"] = {"from": old, "to": new}
    return changes


def _build_summary(action: str, changes: dict[str, dict[str, Any]] | None) -> str:
    if not changes:
        return action
    keys = list(changes.keys())
    snippet = ", ".join(keys[:3])
    suffix = "..." if len(keys) > 3 else ""
    return f"{action}: {snippet}{suffix}"


def record_audit_log(
    db: AsyncSession,
    *,
    actor_id,
    action: str,
    entity: str,
    record_id: str,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    origin: deps.RequestOrigin | None = None,
) -> AuditLog:
    serialized_before = serialize_for_audit(before) if before is not None else None
    serialized_after = serialize_for_audit(after) if after is not None else None
    changes = None
    if serialized_before is not None or serialized_after is not None:
        changes = _diff_values(serialized_before or {}, serialized_after or {}) or None
    entry = AuditLog(
        id=uuid.uuid4(),
        actor_id=actor_id,
        action=action,
        entity=entity,
        record_id=str(record_id),
        before=serialized_before,
        after=serialized_after,
        changes=changes,
        summary=_build_summary(action, changes),
        schema_version=AUDIT_SCHEMA_VERSION,
        ip_address=origin.ip_address if origin else None,
        user_agent=origin.user_agent if origin else None,
    )
    db.add(entry)
    return entry


def _audit_conditions(
    *,
    actor_id: uuid.UUID | None = None,
    action: str | None = None,
    entity: str | None = None,
    record_id: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
) -> list:
    conditions = []
    if actor_id:
        conditions.append(AuditLog.actor_id == actor_id)
    if action:
        conditions.append(AuditLog.action == action)
    if entity:
        conditions.append(AuditLog.entity == entity)
    if record_id:
        conditions.append(AuditLog.record_id == record_id)
    if created_from:
        conditions.append(AuditLog.created_at >= created_from)
    if created_to:
        conditions.append(AuditLog.created_at <= created_to)
    return conditions


async def list_audit_logs(
    db: AsyncSession,
    *,
    limit: int | None = None,
    offset: int = 0,
    **filters: Any,
) -> tuple[list[AuditLog], int]:
    conditions = _audit_conditions(**filters)
    count_stmt = select(func.count()).select_from(AuditLog).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    stmt = (
        select(AuditLog)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total
