from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.common import PhotoValidationStatus
from passport_tracker.schemas.stages import (
    PhotoSignOut,
    PhotoSignResponse,
    PhotoSignUpload,
    PhotoSignValidate,
)
from passport_tracker.services import photo_sign

router = APIRouter(prefix="/photo-sign", tags=["photo-sign"])


def _response(result: photo_sign.PhotoSignResult) -> PhotoSignResponse:
    return PhotoSignResponse(
        application=ApplicationOut.model_validate(result.application),
        photo_sign=PhotoSignOut.model_validate(result.photo_sign),
    )


@router.post("/upload", response_model=PhotoSignResponse, summary="Record photo and signature references")
async def upload_photo_sign(
    payload: PhotoSignUpload,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> PhotoSignResponse:
    return _response(await photo_sign.upload_photo_sign(db, actor, origin, payload))


@router.get("", response_model=list[PhotoSignResponse], summary="Photo validation queue")
async def list_photo_sign(
    status_filter: PhotoValidationStatus | None = Query(
        default=PhotoValidationStatus.PENDING, alias="status"
    ),
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[PhotoSignResponse]:
    rows = await photo_sign.list_pending(
        db,
        actor,
        status=status_filter.value if status_filter else None,
        limit=limit,
        offset=offset,
    )
    return [
        PhotoSignResponse(
            application=ApplicationOut.model_validate(application),
            photo_sign=PhotoSignOut.model_validate(record),
        )
        for record, application in rows
    ]


@router.get(
    "/application/{application_id}",
    response_model=PhotoSignResponse,
    summary="Photo and signature for an application",
)
async def get_photo_sign(
    application_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> PhotoSignResponse:
    return _response(await photo_sign.get_photo_sign(db, actor, application_id))


@router.put(
    "/application/{application_id}",
    response_model=PhotoSignResponse,
    summary="Validate photo and signature",
)
async def validate_photo_sign(
    application_id: UUID,
    payload: PhotoSignValidate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> PhotoSignResponse:
    result = await photo_sign.validate_photo_sign(db, actor, origin, application_id, payload)
    return _response(result)
