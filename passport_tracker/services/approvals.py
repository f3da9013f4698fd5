from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, ApprovalLog
from passport_tracker.schemas.common import ApplicationStatus, ApprovalDecision, Stage
from passport_tracker.services import audit, authz, lifecycle
from passport_tracker.services.errors import LifecycleError, PreconditionFailedError

logger = logging.getLogger(__name__)

DECISION_STATUS = {
    ApprovalDecision.APPROVED: ApplicationStatus.APPROVED,
    ApprovalDecision.REJECTED: ApplicationStatus.REJECTED,
    ApprovalDecision.RETURNED: ApplicationStatus.ON_HOLD,
}


@dataclass(slots=True)
class ApprovalResult:
    application: Application
    approval: ApprovalLog


@dataclass(slots=True)
class BulkSkip:
    application_id: uuid.UUID
    code: str
    reason: str


@dataclass(slots=True)
class BulkApprovalResult:
    approved: list[ApprovalResult] = field(default_factory=list)
    skipped: list[BulkSkip] = field(default_factory=list)


def generate_passport_number() -> str:
    return f"{settings.passport_number_prefix}{secrets.randbelow(90_000_000) + 10_000_000}"


def add_years(start: date, years: int) -> date:
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        # 29 February in a non-leap target year
        return start.replace(year=start.year + years, day=28)


def ensure_ready_for_decision(application: Application) -> None:
    if (
        application.current_stage != Stage.FINAL_APPROVAL.value
        or application.status != ApplicationStatus.IN_PROGRESS.value
    ):
        raise PreconditionFailedError(
            "Application is not awaiting final approval",
            {
                "application_id": str(application.id),
                "current_stage": application.current_stage,
                "status": application.status,
            },
        )


async def process_approval(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_id: uuid.UUID,
    decision: ApprovalDecision,
    comments: str | None = None,
) -> ApprovalResult:
    authz.require(actor, Operation.APPROVAL_PROCESS)
    application = await lifecycle.lock_application(db, application_id)
    ensure_ready_for_decision(application)
    before = audit.snapshot_entities({"application": application})

    now = lifecycle.utcnow()
    if decision == ApprovalDecision.APPROVED:
        issue_date = now.date()
        expiry_date = add_years(issue_date, settings.passport_validity_years)

        def build() -> ApprovalLog:
            return ApprovalLog(
                id=uuid.uuid4(),
                application_id=application.id,
                decision=decision.value,
                approved_by=actor.id,
                comments=comments,
                passport_number=generate_passport_number(),
                issue_date=issue_date,
                expiry_date=expiry_date,
                decision_date=now,
            )

        approval = await lifecycle.allocate_unique(db, build, label="passport number")
        application.approved_at = now
    else:
        approval = ApprovalLog(
            id=uuid.uuid4(),
            application_id=application.id,
            decision=decision.value,
            approved_by=actor.id,
            comments=comments,
            decision_date=now,
        )
        db.add(approval)

    application.status = DECISION_STATUS[decision].value
    if comments:
        application.remarks = comments
    lifecycle.touch(application, now)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action=f"approval.{decision.value}",
        entity="approval",
        record_id=approval.id,
        before=before,
        after={"application": application, "approval": approval},
    )
    logger.info(
        "Application %s decided: %s", application.application_number, decision.value
    )
    return ApprovalResult(application=application, approval=approval)


async def bulk_approve(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    application_ids: list[uuid.UUID],
    comments: str | None = None,
) -> BulkApprovalResult:
    """Approve each id in its own transaction; ineligible ids are reported, not fatal."""
    authz.require(actor, Operation.APPROVAL_BULK)
    outcome = BulkApprovalResult()
    for application_id in dict.fromkeys(application_ids):
        try:
            result = await process_approval(
                db, actor, origin, application_id, ApprovalDecision.APPROVED, comments
            )
        except LifecycleError as exc:
            # Releases the row lock taken before the precondition check.
            await db.rollback()
            outcome.skipped.append(
                BulkSkip(application_id=application_id, code=exc.code, reason=exc.message)
            )
            continue
        # Detach committed rows so a later per-item rollback cannot expire them.
        db.expunge(result.approval)
        db.expunge(result.application)
        outcome.approved.append(result)
    return outcome


async def list_pending(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    limit: int | None = None,
    offset: int = 0,
) -> list[Application]:
    authz.require(actor, Operation.APPROVAL_QUEUE_VIEW)
    stmt = (
        select(Application)
        .where(
            Application.current_stage == Stage.FINAL_APPROVAL.value,
            Application.status == ApplicationStatus.IN_PROGRESS.value,
        )
        .order_by(Application.updated_at.asc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_history(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    decision: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[ApprovalLog]:
    authz.require(actor, Operation.APPROVAL_QUEUE_VIEW)
    stmt = select(ApprovalLog)
    if decision:
        stmt = stmt.where(ApprovalLog.decision == decision)
    stmt = (
        stmt.order_by(ApprovalLog.decision_date.desc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_application_approvals(
    db: AsyncSession, actor: deps.Actor, application_id: uuid.UUID
) -> list[ApprovalLog]:
    application = await lifecycle.get_application(db, application_id)
    authz.require_application_access(actor, application.user_id)
    stmt = (
        select(ApprovalLog)
        .where(ApprovalLog.application_id == application.id)
        .order_by(ApprovalLog.decision_date.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
