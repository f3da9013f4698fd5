from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, ProcessingRecord, VerificationRecord
from passport_tracker.schemas.common import DocumentType, Stage, VerificationStatus
from passport_tracker.schemas.stages import VerificationUpdate
from passport_tracker.services import audit, authz, lifecycle, stage_records
from passport_tracker.services.errors import NotFoundError

PENDING_STATUSES = (VerificationStatus.PENDING.value, VerificationStatus.IN_PROGRESS.value)


@dataclass(slots=True)
class VerificationResult:
    application: Application
    verification: VerificationRecord
    processing: ProcessingRecord | None = None


def should_advance(record: VerificationRecord) -> bool:
    return record.verification_status == VerificationStatus.COMPLETED.value


async def _load(db: AsyncSession, application_id: uuid.UUID, *, for_update: bool):
    if for_update:
        application = await lifecycle.lock_application(db, application_id)
    else:
        application = await lifecycle.get_application(db, application_id)
    record = await stage_records.verification.get(db, application.id, for_update=for_update)
    if record is None:
        raise NotFoundError(
            "Application has not reached document verification",
            {"application_id": str(application_id)},
        )
    return application, record


async def _apply(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    verdicts: dict[str, Any],
    *,
    action: str,
) -> VerificationResult:
    authz.require(actor, Operation.VERIFICATION_UPDATE)
    application, record = await _load(db, application_id, for_update=True)
    lifecycle.ensure_not_terminal(application)
    lifecycle.ensure_not_held(application)
    before = audit.snapshot_entities({"application": application, "verification": record})

    stage_records.verification.update(record, verdicts, actor)
    processing = None
    if should_advance(record):
        processing = await lifecycle.advance(db, application, Stage.POLICE_VERIFICATION)
    lifecycle.touch(application)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action=action,
        entity="verification",
        record_id=record.id,
        before=before,
        after={"application": application, "verification": record, "processing": processing},
    )
    return VerificationResult(application=application, verification=record, processing=processing)


async def update_verification(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    payload: VerificationUpdate,
) -> VerificationResult:
    verdicts = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    return await _apply(db, actor, origin, application_id, verdicts, action="verification.update")


async def verify_document(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    document_type: DocumentType,
    verified: bool = True,
) -> VerificationResult:
    return await _apply(
        db,
        actor,
        origin,
        application_id,
        {document_type.flag_column: verified},
        action="verification.document",
    )


async def get_verification(
    db: AsyncSession, actor: deps.Actor, application_id: uuid.UUID
) -> VerificationResult:
    application, record = await _load(db, application_id, for_update=False)
    authz.require_application_access(actor, application.user_id)
    return VerificationResult(application=application, verification=record)


async def list_pending(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    limit: int | None = None,
    offset: int = 0,
) -> list[tuple[VerificationRecord, Application]]:
    authz.require(actor, Operation.VERIFICATION_QUEUE_VIEW)
    stmt = (
        select(VerificationRecord, Application)
        .join(Application, Application.id == VerificationRecord.application_id)
        .where(VerificationRecord.verification_status.in_(PENDING_STATUSES))
        .order_by(VerificationRecord.created_at.asc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return [(record, application) for record, application in result.all()]
