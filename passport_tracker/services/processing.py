from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, ProcessingRecord
from passport_tracker.schemas.common import PoliceVerificationStatus, Stage
from passport_tracker.schemas.stages import ProcessingUpdate
from passport_tracker.services import audit, authz, lifecycle, stage_records
from passport_tracker.services.errors import NotFoundError, ValidationFailedError

PENDING_STATUSES = (
    PoliceVerificationStatus.PENDING.value,
    PoliceVerificationStatus.IN_PROGRESS.value,
)
REFERENCE_NUMBERS = (1, 2)


@dataclass(slots=True)
class ProcessingResult:
    application: Application
    processing: ProcessingRecord


def should_advance(record: ProcessingRecord) -> bool:
    return (
        record.police_verification_status == PoliceVerificationStatus.CLEAR.value
        and bool(record.reference1_verified)
        and bool(record.reference2_verified)
    )


async def _load(db: AsyncSession, application_id: uuid.UUID, *, for_update: bool):
    if for_update:
        application = await lifecycle.lock_application(db, application_id)
    else:
        application = await lifecycle.get_application(db, application_id)
    record = await stage_records.processing.get(db, application.id, for_update=for_update)
    if record is None:
        raise NotFoundError(
            "Application has not reached police verification",
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
) -> ProcessingResult:
    authz.require(actor, Operation.PROCESSING_UPDATE)
    application, record = await _load(db, application_id, for_update=True)
    lifecycle.ensure_not_terminal(application)
    lifecycle.ensure_not_held(application)
    before = audit.snapshot_entities({"application": application, "processing": record})

    stage_records.processing.update(record, verdicts, actor)
    # Decided on the row as it now stands, so either interleaving of
    # reference updates advances exactly once.
    if should_advance(record):
        await lifecycle.advance(db, application, Stage.FINAL_APPROVAL)
    lifecycle.touch(application)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action=action,
        entity="processing",
        record_id=record.id,
        before=before,
        after={"application": application, "processing": record},
    )
    return ProcessingResult(application=application, processing=record)


async def update_processing(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    payload: ProcessingUpdate,
) -> ProcessingResult:
    verdicts = payload.model_dump(exclude_unset=True, exclude_none=True, mode="json")
    return await _apply(db, actor, origin, application_id, verdicts, action="processing.update")


async def verify_reference(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    reference_number: int,
    verified: bool = True,
) -> ProcessingResult:
    if reference_number not in REFERENCE_NUMBERS:
        raise ValidationFailedError(
            "Reference number must be 1 or 2",
            {"reference_number": reference_number},
        )
    return await _apply(
        db,
        actor,
        origin,
        application_id,
        {f"reference{reference_number}_verified": verified},
        action="processing.reference",
    )


async def get_processing(
    db: AsyncSession, actor: deps.Actor, application_id: uuid.UUID
) -> ProcessingResult:
    application, record = await _load(db, application_id, for_update=False)
    authz.require_application_access(actor, application.user_id)
    return ProcessingResult(application=application, processing=record)


async def list_pending(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    limit: int | None = None,
    offset: int = 0,
) -> list[tuple[ProcessingRecord, Application]]:
    authz.require(actor, Operation.PROCESSING_QUEUE_VIEW)
    stmt = (
        select(ProcessingRecord, Application)
        .join(Application, Application.id == ProcessingRecord.application_id)
        .where(ProcessingRecord.police_verification_status.in_(PENDING_STATUSES))
        .order_by(ProcessingRecord.created_at.asc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return [(record, application) for record, application in result.all()]
