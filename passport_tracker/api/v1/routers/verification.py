from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.common import DocumentType
from passport_tracker.schemas.stages import (
    DocumentVerdict,
    VerificationOut,
    VerificationResponse,
    VerificationUpdate,
)
from passport_tracker.services import verification

router = APIRouter(prefix="/verification", tags=["verification"])


def _response(application, record) -> VerificationResponse:
    return VerificationResponse(
        application=ApplicationOut.model_validate(application),
        verification=VerificationOut.model_validate(record),
    )


@router.get("/pending", response_model=list[VerificationResponse], summary="Document verification queue")
async def list_pending_verifications(
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> list[VerificationResponse]:
    rows = await verification.list_pending(db, actor, limit=limit, offset=offset)
    return [_response(application, record) for record, application in rows]


@router.get(
    "/application/{application_id}",
    response_model=VerificationResponse,
    summary="Verification record for an application",
)
async def get_verification(
    application_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> VerificationResponse:
    result = await verification.get_verification(db, actor, application_id)
    return _response(result.application, result.verification)


@router.put(
    "/application/{application_id}",
    response_model=VerificationResponse,
    summary="Update document verification",
)
async def update_verification(
    application_id: UUID,
    payload: VerificationUpdate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> VerificationResponse:
    result = await verification.update_verification(db, actor, origin, application_id, payload)
    return _response(result.application, result.verification)


@router.put(
    "/application/{application_id}/document/{document_type}",
    response_model=VerificationResponse,
    summary="Mark a single document verified",
)
async def verify_document(
    application_id: UUID,
    document_type: DocumentType,
    payload: DocumentVerdict | None = None,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> VerificationResponse:
    verified = payload.verified if payload else True
    result = await verification.verify_document(
        db, actor, origin, application_id, document_type, verified
    )
    return _response(result.application, result.verification)
