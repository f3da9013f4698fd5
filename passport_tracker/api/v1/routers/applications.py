from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationOut,
    ApplicationStatusUpdate,
)
from passport_tracker.schemas.common import ApplicationStatus, Stage
from passport_tracker.services import applications

router = APIRouter(prefix="/applications", tags=["applications"])


@router.get("", response_model=ApplicationListResponse, summary="List applications")
async def list_applications(
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    stage: Stage | None = Query(default=None),
    user_id: UUID | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    items, total = await applications.list_applications(
        db,
        actor,
        user_id=user_id,
        status=status_filter.value if status_filter else None,
        stage=stage.value if stage else None,
        limit=limit,
        offset=offset,
    )
    return ApplicationListResponse(
        items=[ApplicationOut.model_validate(item) for item in items], total=total
    )


@router.post(
    "",
    response_model=ApplicationOut,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a passport application",
)
async def submit_application(
    payload: ApplicationCreate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationOut:
    application = await applications.submit_application(db, actor, origin, payload)
    return ApplicationOut.model_validate(application)


@router.get("/{application_id}", response_model=ApplicationOut, summary="Get one application")
async def get_application(
    application_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> ApplicationOut:
    application = await applications.get_application(db, actor, application_id)
    return ApplicationOut.model_validate(application)


@router.patch(
    "/{application_id}/status",
    response_model=ApplicationOut,
    summary="Hold, resume, reject or complete an application",
)
async def update_application_status(
    application_id: UUID,
    payload: ApplicationStatusUpdate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> ApplicationOut:
    application = await applications.update_status(
        db, actor, origin, application_id, payload.status, payload.remarks
    )
    return ApplicationOut.model_validate(application)
