"""Application lifecycle engine.

Owns ``Application.status`` and ``Application.current_stage``. Stage services
lock the application, check preconditions, write their verdicts and then call
back into :func:`advance` and :func:`commit_transition`, so that the stage
record, the application row and exactly one audit entry land in a single
transaction.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.models import Application
from passport_tracker.schemas.common import (
    STAGE_ORDER,
    TERMINAL_STATUSES,
    ApplicationStatus,
    Stage,
)
from passport_tracker.services import audit, stage_records
from passport_tracker.services.errors import (
    ConflictError,
    NotFoundError,
    PreconditionFailedError,
    StorageFailureError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stage records created on first entry to a stage.
STAGE_ENTRY_RECORDS: dict[Stage, stage_records.StageRecordHandler] = {
    Stage.DOCUMENT_VERIFICATION: stage_records.verification,
    Stage.POLICE_VERIFICATION: stage_records.processing,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stage_rank(stage: Stage | str) -> int:
    return STAGE_ORDER.index(Stage(stage))


def is_terminal(application: Application) -> bool:
    return application.status in TERMINAL_STATUSES


def ensure_not_terminal(application: Application) -> None:
    if is_terminal(application):
        raise PreconditionFailedError(
            f"Application is {application.status} and can no longer change",
            {"application_id": str(application.id), "status": application.status},
        )


def ensure_not_held(application: Application) -> None:
    if application.status == ApplicationStatus.ON_HOLD.value:
        raise PreconditionFailedError(
            "Application is on hold; resume it before recording further verdicts",
            {"application_id": str(application.id), "status": application.status},
        )


def ensure_stage_in(application: Application, allowed: set[Stage]) -> None:
    if Stage(application.current_stage) not in allowed:
        raise PreconditionFailedError(
            f"Application is at stage {application.current_stage}",
            {
                "application_id": str(application.id),
                "current_stage": application.current_stage,
                "allowed_stages": sorted(stage.value for stage in allowed),
            },
        )


def advance_stage(application: Application, target: Stage) -> bool:
    """Move ``current_stage`` forward to ``target``; never backwards, never once terminal."""
    if is_terminal(application):
        return False
    if stage_rank(application.current_stage) >= stage_rank(target):
        return False
    application.current_stage = target.value
    return True


async def advance(db: AsyncSession, application: Application, target: Stage) -> Any | None:
    """Advance and create-or-fetch the target stage's record; None when nothing moved."""
    if not advance_stage(application, target):
        return None
    logger.info(
        "Application %s advanced to %s", application.application_number, target.value
    )
    handler = STAGE_ENTRY_RECORDS.get(target)
    if handler is None:
        return None
    return await handler.create(db, application.id)


def mark_in_progress(application: Application) -> None:
    if application.status in {ApplicationStatus.SUBMITTED.value, ApplicationStatus.DRAFT.value}:
        application.status = ApplicationStatus.IN_PROGRESS.value


def touch(application: Application, now: datetime | None = None) -> None:
    application.updated_at = now or utcnow()


async def get_application(db: AsyncSession, application_id: uuid.UUID) -> Application:
    result = await db.execute(select(Application).where(Application.id == application_id))
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError("Application not found", {"application_id": str(application_id)})
    return application


async def lock_application(db: AsyncSession, application_id: uuid.UUID) -> Application:
    """Load the application row ``FOR UPDATE``; always taken before any stage row."""
    stmt = select(Application).where(Application.id == application_id).with_for_update()
    result = await db.execute(stmt)
    application = result.scalar_one_or_none()
    if application is None:
        raise NotFoundError("Application not found", {"application_id": str(application_id)})
    return application


async def allocate_unique(
    db: AsyncSession,
    build: Callable[[], T],
    *,
    label: str,
    attempts: int | None = None,
) -> T:
    """Insert ``build()`` inside a savepoint, retrying on a unique-constraint collision."""
    max_attempts = attempts or settings.identifier_max_attempts
    await db.flush()
    for attempt in range(1, max_attempts + 1):
        candidate = build()
        try:
            async with db.begin_nested():
                db.add(candidate)
                await db.flush()
        except IntegrityError:
            logger.warning("Collision allocating %s (attempt %s/%s)", label, attempt, max_attempts)
            continue
        return candidate
    raise ConflictError(
        f"Could not allocate a unique {label}",
        {"attempts": max_attempts},
        code="identifier_exhausted",
    )


async def commit_transition(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    *,
    action: str,
    entity: str,
    record_id: Any,
    before: dict[str, Any] | None,
    after: dict[str, Any],
) -> dict[str, Any]:
    """Flush the mutation, append its audit entry and commit as one unit."""
    try:
        await db.flush()
        after_payload = audit.snapshot_entities(after)
        audit.record_audit_log(
            db,
            actor_id=actor.id,
            action=action,
            entity=entity,
            record_id=str(record_id),
            before=before,
            after=after_payload,
            origin=origin,
        )
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        raise ConflictError(
            "The record was updated by another request; reload and retry",
            {"entity": entity, "record_id": str(record_id)},
            code="concurrent_update",
        ) from exc
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(
            "The change conflicts with existing data",
            {"entity": entity, "record_id": str(record_id)},
        ) from exc
    except DBAPIError as exc:
        await db.rollback()
        logger.error("Storage failure during %s on %s %s", action, entity, record_id)
        raise StorageFailureError(
            "The data store is temporarily unavailable; retry the request",
            {"retryable": True},
        ) from exc
    logger.info("%s committed for %s %s", action, entity, record_id)
    return after_payload

