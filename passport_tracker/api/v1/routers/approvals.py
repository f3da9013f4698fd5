from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.approvals import (
    ApprovalLogOut,
    ApprovalRequest,
    ApprovalResponse,
    BulkApprovalRequest,
    BulkApprovalResponse,
    BulkApprovalSkip,
)
from passport_tracker.schemas.common import ApprovalDecision
from passport_tracker.services import approvals

router = APIRouter(prefix="/approval", tags=["approval"])


def _response(result: approvals.ApprovalResult) -> ApprovalResponse:
    return ApprovalResponse(
        application=ApplicationOut.model_validate(result.application),
        approval=ApprovalLogOut.model_validate(result.approval),
    )


@router.get("/pending", response_model=list[ApplicationOut], summary="Applications awaiting a decision")
async def list_pending_approvals(
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationOut]:
    items = await approvals.list_pending(db, actor, limit=limit, offset=offset)
    return [ApplicationOut.model_validate(item) for item in items]


@router.get("", response_model=list[ApprovalLogOut], summary="Decision history")
async def list_approvals(
    decision: ApprovalDecision | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ApprovalLogOut]:
    items = await approvals.list_history(
        db,
        actor,
        decision=decision.value if decision else None,
        limit=limit,
        offset=offset,
    )
    return [ApprovalLogOut.model_validate(item) for item in items]


@router.get(
    "/application/{application_id}",
    response_model=list[ApprovalLogOut],
    summary="Decisions recorded for an application",
)
async def get_application_approvals(
    application_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ApprovalLogOut]:
    items = await approvals.get_application_approvals(db, actor, application_id)
    return [ApprovalLogOut.model_validate(item) for item in items]


@router.post("/bulk", response_model=BulkApprovalResponse, summary="Approve several applications")
async def bulk_approve(
    payload: BulkApprovalRequest,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> BulkApprovalResponse:
    outcome = await approvals.bulk_approve(
        db, actor, origin, payload.application_ids, payload.comments
    )
    return BulkApprovalResponse(
        approved=[_response(item) for item in outcome.approved],
        skipped=[
            BulkApprovalSkip(application_id=skip.application_id, code=skip.code, reason=skip.reason)
            for skip in outcome.skipped
        ],
    )


@router.post("/{application_id}", response_model=ApprovalResponse, summary="Record a final decision")
async def process_approval(
    application_id: UUID,
    payload: ApprovalRequest,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> ApprovalResponse:
    result = await approvals.process_approval(
        db, actor, origin, application_id, payload.decision, payload.comments
    )
    return _response(result)
