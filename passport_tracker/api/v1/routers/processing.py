from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.stages import (
    ProcessingOut,
    ProcessingResponse,
    ProcessingUpdate,
    ReferenceVerdict,
)
from passport_tracker.services import processing

router = APIRouter(prefix="/processing", tags=["processing"])


def _response(application, record) -> ProcessingResponse:
    return ProcessingResponse(
        application=ApplicationOut.model_validate(application),
        processing=ProcessingOut.model_validate(record),
    )


@router.get("/pending", response_model=list[ProcessingResponse], summary="Police verification queue")
async def list_pending_processing(
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[ProcessingResponse]:
    rows = await processing.list_pending(db, actor, limit=limit, offset=offset)
    return [_response(application, record) for record, application in rows]


@router.get(
    "/application/{application_id}",
    response_model=ProcessingResponse,
    summary="Processing record for an application",
)
async def get_processing(
    application_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> ProcessingResponse:
    result = await processing.get_processing(db, actor, application_id)
    return _response(result.application, result.processing)


@router.put(
    "/application/{application_id}",
    response_model=ProcessingResponse,
    summary="Update police and reference verification",
)
async def update_processing(
    application_id: UUID,
    payload: ProcessingUpdate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> ProcessingResponse:
    result = await processing.update_processing(db, actor, origin, application_id, payload)
    return _response(result.application, result.processing)


@router.put(
    "/application/{application_id}/reference/{reference_number}",
    response_model=ProcessingResponse,
    summary="Mark one reference verified",
)
async def verify_reference(
    application_id: UUID,
    reference_number: int = Path(ge=1, le=2),
    payload: ReferenceVerdict | None = None,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> ProcessingResponse:
    verified = payload.verified if payload else True
    result = await processing.verify_reference(
        db, actor, origin, application_id, reference_number, verified
    )
    return _response(result.application, result.processing)
