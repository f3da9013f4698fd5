from __future__ import annotations

import secrets
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, Token
from passport_tracker.schemas.common import Stage, TokenStatus
from passport_tracker.schemas.stages import TokenIssue
from passport_tracker.services import audit, authz, lifecycle

TOKEN_ISSUE_STAGES = {Stage.APPLICATION, Stage.TOKEN}


@dataclass(slots=True)
class TokenIssueResult:
    application: Application
    token: Token
    cancelled: list[Token]


def generate_token_number() -> str:
    return f"TKN{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"


async def _active_tokens(db: AsyncSession, application_id: uuid.UUID) -> list[Token]:
    stmt = (
        select(Token)
        .where(Token.application_id == application_id, Token.status == TokenStatus.ACTIVE.value)
        .with_for_update()
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def issue_token(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    payload: TokenIssue,
) -> TokenIssueResult:
    authz.require(actor, Operation.TOKEN_ISSUE)
    application = await lifecycle.lock_application(db, payload.application_id)
    lifecycle.ensure_not_terminal(application)
    lifecycle.ensure_not_held(application)
    lifecycle.ensure_stage_in(application, TOKEN_ISSUE_STAGES)

    previous = await _active_tokens(db, application.id)
    before = audit.snapshot_entities({"application": application, "active_tokens": previous})

    # Re-issuing invalidates whatever was still active.
    for token in previous:
        token.status = TokenStatus.CANCELLED.value

    now = lifecycle.utcnow()
    valid_until = payload.valid_until or (now.date() + timedelta(days=settings.token_validity_days))

    def build() -> Token:
        return Token(
            id=uuid.uuid4(),
            application_id=application.id,
            token_number=generate_token_number(),
            appointment_date=payload.appointment_date,
            appointment_time=payload.appointment_time,
            office_location=payload.office_location,
            valid_until=valid_until,
            status=TokenStatus.ACTIVE.value,
            issued_by=actor.id,
            issued_at=now,
        )

    token = await lifecycle.allocate_unique(db, build, label="token number")
    await lifecycle.advance(db, application, Stage.TOKEN)
    lifecycle.mark_in_progress(application)
    lifecycle.touch(application, now)

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="token.issue",
        entity="token",
        record_id=token.id,
        before=before,
        after={"application": application, "token": token, "cancelled_tokens": previous},
    )
    return TokenIssueResult(application=application, token=token, cancelled=previous)


async def list_tokens(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    status: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[Token], int]:
    authz.require(actor, Operation.TOKEN_QUEUE_VIEW)
    conditions = [Token.status == status] if status else []
    total = int(
        (await db.execute(select(func.count()).select_from(Token).where(*conditions))).scalar_one() or 0
    )
    stmt = (
        select(Token)
        .where(*conditions)
        .order_by(Token.issued_at.desc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total
