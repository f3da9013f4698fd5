from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.common import TokenStatus
from passport_tracker.schemas.stages import (
    TokenIssue,
    TokenIssueResponse,
    TokenListResponse,
    TokenOut,
)
from passport_tracker.services import tokens

router = APIRouter(prefix="/tokens", tags=["tokens"])


@router.get("", response_model=TokenListResponse, summary="List issued tokens")
async def list_tokens(
    status_filter: TokenStatus | None = Query(default=None, alias="status"),
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> TokenListResponse:
    items, total = await tokens.list_tokens(
        db,
        actor,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return TokenListResponse(items=[TokenOut.model_validate(item) for item in items], total=total)


@router.post(
    "",
    response_model=TokenIssueResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue an appointment token",
)
async def issue_token(
    payload: TokenIssue,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> TokenIssueResponse:
    result = await tokens.issue_token(db, actor, origin, payload)
    return TokenIssueResponse(
        application=ApplicationOut.model_validate(result.application),
        token=TokenOut.model_validate(result.token),
    )
