from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, PhotoSignValidation, VerificationRecord
from passport_tracker.schemas.common import PhotoValidationStatus, Stage
from passport_tracker.schemas.stages import PhotoSignUpload, PhotoSignValidate
from passport_tracker.services import audit, authz, lifecycle, stage_records
from passport_tracker.services.errors import NotFoundError, ValidationFailedError


@dataclass(slots=True)
class PhotoSignResult:
    application: Application
    photo_sign: PhotoSignValidation
    verification: VerificationRecord | None = None


def validation_outcome(photo_approved: bool, signature_approved: bool) -> PhotoValidationStatus:
    if photo_approved and signature_approved:
        return PhotoValidationStatus.APPROVED
    return PhotoValidationStatus.REJECTED


async def upload_photo_sign(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    payload: PhotoSignUpload,
) -> PhotoSignResult:
    authz.require(actor, Operation.PHOTO_SIGN_UPLOAD)
    if not payload.photo_path and not payload.signature_path:
        raise ValidationFailedError(
            "Provide a photo reference, a signature reference, or both",
            {"fields": ["photo_path", "signature_path"]},
        )
    application = await lifecycle.lock_application(db, payload.application_id)
    authz.require(actor, Operation.PHOTO_SIGN_UPLOAD, owner_id=application.user_id)

    existing = await stage_records.photo_sign.get(db, application.id, for_update=True)
    before = audit.snapshot_entities({"application": application, "photo_sign": existing})

    record = await stage_records.photo_sign.create(
        db,
        application.id,
        photo_path=payload.photo_path,
        signature_path=payload.signature_path,
    )
    lifecycle.mark_in_progress(application)
    await lifecycle.advance(db, application, Stage.PHOTO_VALIDATION)
    lifecycle.touch(application)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="photo_sign.upload",
        entity="photo_sign",
        record_id=record.id,
        before=before,
        after={"application": application, "photo_sign": record},
    )
    return PhotoSignResult(application=application, photo_sign=record)


async def validate_photo_sign(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    payload: PhotoSignValidate,
) -> PhotoSignResult:
    authz.require(actor, Operation.PHOTO_SIGN_VALIDATE)
    application = await lifecycle.lock_application(db, application_id)
    lifecycle.ensure_not_terminal(application)
    lifecycle.ensure_not_held(application)
    record = await stage_records.photo_sign.get(db, application.id, for_update=True)
    if record is None:
        raise NotFoundError(
            "No photo or signature has been uploaded for this application",
            {"application_id": str(application_id)},
        )
    before = audit.snapshot_entities({"application": application, "photo_sign": record})

    outcome = validation_outcome(payload.photo_approved, payload.signature_approved)
    stage_records.photo_sign.update(
        record,
        {
            "photo_approved": payload.photo_approved,
            "signature_approved": payload.signature_approved,
            "photo_remarks": payload.photo_remarks,
            "signature_remarks": payload.signature_remarks,
            "validation_status": outcome.value,
        },
        actor,
    )
    verification = None
    if outcome == PhotoValidationStatus.APPROVED:
        verification = await lifecycle.advance(db, application, Stage.DOCUMENT_VERIFICATION)
    lifecycle.touch(application)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="photo_sign.validate",
        entity="photo_sign",
        record_id=record.id,
        before=before,
        after={"application": application, "photo_sign": record, "verification": verification},
    )
    return PhotoSignResult(application=application, photo_sign=record, verification=verification)


async def get_photo_sign(
    db: AsyncSession, actor: deps.Actor, application_id: uuid.UUID
) -> PhotoSignResult:
    application = await lifecycle.get_application(db, application_id)
    authz.require_application_access(actor, application.user_id)
    record = await stage_records.photo_sign.get(db, application.id)
    if record is None:
        raise NotFoundError(
            "No photo or signature has been uploaded for this application",
            {"application_id": str(application_id)},
        )
    return PhotoSignResult(application=application, photo_sign=record)


async def list_pending(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    status: str | None = PhotoValidationStatus.PENDING.value,
    limit: int | None = None,
    offset: int = 0,
) -> list[tuple[PhotoSignValidation, Application]]:
    authz.require(actor, Operation.PHOTO_SIGN_QUEUE_VIEW)
    stmt = select(PhotoSignValidation, Application).join(
        Application, Application.id == PhotoSignValidation.application_id
    )
    if status:
        stmt = stmt.where(PhotoSignValidation.validation_status == status)
    stmt = (
        stmt.order_by(PhotoSignValidation.created_at.asc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return [(record, application) for record, application in result.all()]
