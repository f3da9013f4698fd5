import re
from datetime import date, timedelta

import pytest

from conftest import (
    FakeAsyncSession,
    FakeResult,
    entity_handler,
    make_actor,
    make_application,
)

from passport_tracker.models import Application, Token
from passport_tracker.schemas.common import ApplicationStatus, Role, Stage, TokenStatus
from passport_tracker.schemas.stages import TokenIssue
from passport_tracker.services import tokens
from passport_tracker.services.errors import PreconditionFailedError, UnauthorizedError


def _active_token(application: Application, number: str = "TKN1700000000000001") -> Token:
    return Token(
        application_id=application.id,
        token_number=number,
        valid_until=date(2024, 2, 14),
        status=TokenStatus.ACTIVE.value,
    )


def test_token_number_format():
    assert re.fullmatch(r"TKN\d{13,}\d{3}", tokens.generate_token_number())


@pytest.mark.asyncio
async def test_issue_token_advances_to_token_stage(origin):
    db = FakeAsyncSession()
    application = make_application()
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))
    actor = make_actor(Role.TOKEN)

    result = await tokens.issue_token(
        db, actor, origin, TokenIssue(application_id=application.id, office_location="PSK Pune")
    )

    assert application.current_stage == Stage.TOKEN.value
    assert application.status == ApplicationStatus.IN_PROGRESS.value
    assert result.token.status == TokenStatus.ACTIVE.value
    assert result.token.issued_by == actor.id
    assert result.token.valid_until == result.token.issued_at.date() + timedelta(days=30)
    assert result.cancelled == []
    [entry] = db.audit_entries
    assert entry.action == "token.issue"
    assert entry.after["token"]["token_number"] == result.token.token_number
    assert entry.after["application"]["current_stage"] == "token"


@pytest.mark.asyncio
async def test_reissue_cancels_previous_active_token(origin):
    db = FakeAsyncSession()
    application = make_application(stage=Stage.TOKEN, status=ApplicationStatus.IN_PROGRESS)
    previous = _active_token(application)
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))
    db.on_execute(entity_handler(Token, FakeResult(items=[previous])))

    result = await tokens.issue_token(
        db,
        make_actor(Role.ADMIN),
        origin,
        TokenIssue(application_id=application.id, valid_until=date(2024, 3, 1)),
    )

    assert previous.status == TokenStatus.CANCELLED.value
    assert result.cancelled == [previous]
    assert result.token.valid_until == date(2024, 3, 1)
    assert application.current_stage == Stage.TOKEN.value
    [entry] = db.audit_entries
    assert entry.before["active_tokens"][0]["status"] == "active"
    assert entry.after["cancelled_tokens"][0]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_issue_token_after_token_stage_is_refused(origin):
    db = FakeAsyncSession()
    application = make_application(stage=Stage.PHOTO_VALIDATION, status=ApplicationStatus.IN_PROGRESS)
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    with pytest.raises(PreconditionFailedError):
        await tokens.issue_token(db, make_actor(Role.TOKEN), origin, TokenIssue(application_id=application.id))

    assert db.added == []
    assert db.commits == 0


@pytest.mark.asyncio
async def test_issue_token_on_terminal_application_is_refused(origin):
    db = FakeAsyncSession()
    application = make_application(status=ApplicationStatus.REJECTED)
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    with pytest.raises(PreconditionFailedError) as excinfo:
        await tokens.issue_token(db, make_actor(Role.TOKEN), origin, TokenIssue(application_id=application.id))

    assert excinfo.value.details["status"] == "rejected"
    assert application.current_stage == Stage.APPLICATION.value


@pytest.mark.asyncio
async def test_photo_role_cannot_issue_tokens(origin):
    with pytest.raises(UnauthorizedError):
        await tokens.issue_token(
            FakeAsyncSession(), make_actor(Role.PHOTO), origin, TokenIssue(application_id=make_application().id)
        )


@pytest.mark.asyncio
async def test_issue_token_on_held_application_keeps_the_hold(origin):
    db = FakeAsyncSession()
    application = make_application(status=ApplicationStatus.ON_HOLD)
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    with pytest.raises(PreconditionFailedError) as excinfo:
        await tokens.issue_token(db, make_actor(Role.TOKEN), origin, TokenIssue(application_id=application.id))

    assert excinfo.value.details["status"] == "on_hold"
    assert application.status == ApplicationStatus.ON_HOLD.value
    assert application.current_stage == Stage.APPLICATION.value
    assert db.added == []
    assert db.commits == 0

