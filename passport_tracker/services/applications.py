from __future__ import annotations

import logging
import secrets
import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application
from passport_tracker.schemas.applications import ApplicationCreate
from passport_tracker.schemas.common import (
    TERMINAL_STATUSES,
    ApplicationStatus,
    Role,
    Stage,
)
from passport_tracker.services import audit, authz, lifecycle
from passport_tracker.services.errors import PreconditionFailedError

logger = logging.getLogger(__name__)

_NON_TERMINAL = frozenset(status.value for status in ApplicationStatus) - TERMINAL_STATUSES

# target status -> statuses it may be entered from
STATUS_TRANSITIONS: dict[ApplicationStatus, frozenset[str]] = {
    ApplicationStatus.ON_HOLD: frozenset(
        {ApplicationStatus.SUBMITTED.value, ApplicationStatus.IN_PROGRESS.value}
    ),
    ApplicationStatus.IN_PROGRESS: frozenset({ApplicationStatus.ON_HOLD.value}),
    ApplicationStatus.REJECTED: _NON_TERMINAL,
    ApplicationStatus.COMPLETED: frozenset({ApplicationStatus.APPROVED.value}),
}


def generate_application_number() -> str:
    today = lifecycle.utcnow().strftime("%Y%m%d")
    return f"APP{today}{secrets.token_hex(3).upper()}"


async def submit_application(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    payload: ApplicationCreate,
) -> Application:
    authz.require(actor, Operation.APPLICATION_SUBMIT)
    now = lifecycle.utcnow()
    fields = payload.model_dump()
    fields["gender"] = payload.gender.value
    fields["passport_type"] = payload.passport_type.value
    fields["priority"] = payload.priority.value
    fields["email"] = str(payload.email)

    def build() -> Application:
        return Application(
            id=uuid.uuid4(),
            application_number=generate_application_number(),
            user_id=actor.id,
            status=ApplicationStatus.SUBMITTED.value,
            current_stage=Stage.APPLICATION.value,
            created_at=now,
            updated_at=now,
            **fields,
        )

    application = await lifecycle.allocate_unique(db, build, label="application number")
    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="application.submit",
        entity="application",
        record_id=application.id,
        before=None,
        after={"application": application},
    )
    logger.info("Application %s submitted", application.application_number)
    return application


async def get_application(
    db: AsyncSession, actor: deps.Actor, application_id: uuid.UUID
) -> Application:
    application = await lifecycle.get_application(db, application_id)
    authz.require_application_access(actor, application.user_id)
    return application


async def list_applications(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    user_id: uuid.UUID | None = None,
    status: str | None = None,
    stage: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[Application], int]:
    authz.require_any(actor, [Operation.APPLICATION_VIEW_ALL, Operation.APPLICATION_VIEW_OWN])
    if actor.role == Role.USER.value:
        user_id = actor.id
    conditions: list[Any] = []
    if user_id:
        conditions.append(Application.user_id == user_id)
    if status:
        conditions.append(Application.status == status)
    if stage:
        conditions.append(Application.current_stage == stage)

    count_stmt = select(func.count()).select_from(Application).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    stmt = (
        select(Application)
        .where(*conditions)
        .order_by(Application.created_at.desc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def update_status(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    target: ApplicationStatus,
    remarks: str | None = None,
) -> Application:
    authz.require(actor, Operation.APPLICATION_STATUS_UPDATE)
    if target == ApplicationStatus.COMPLETED:
        authz.require(actor, Operation.APPLICATION_COMPLETE)

    application = await lifecycle.lock_application(db, application_id)
    allowed_from = STATUS_TRANSITIONS.get(target)
    if allowed_from is None or application.status not in allowed_from:
        raise PreconditionFailedError(
            f"Cannot move application from {application.status} to {target.value}",
            {
                "application_id": str(application.id),
                "status": application.status,
                "target": target.value,
            },
        )
    before = audit.snapshot_entities({"application": application})

    application.status = target.value
    if target == ApplicationStatus.COMPLETED:
        # Completion is the final stage, so this cannot regress.
        application.current_stage = Stage.COMPLETED.value
    if remarks is not None:
        application.remarks = remarks
    lifecycle.touch(application)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="application.status.update",
        entity="application",
        record_id=application.id,
        before=before,
        after={"application": application},
    )
    return application
