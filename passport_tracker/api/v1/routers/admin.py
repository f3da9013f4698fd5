from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.schemas.common import Role, UserStatus
from passport_tracker.schemas.users import (
    StatisticsOut,
    UserCreate,
    UserListResponse,
    UserOut,
    UserUpdate,
)
from passport_tracker.services import admin

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    role: Role | None = Query(default=None),
    status_filter: UserStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=100),
    limit: int | None = Query(default=None, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    items, total = await admin.list_users(
        db,
        actor,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
        search=search,
        limit=limit,
        offset=offset,
    )
    return UserListResponse(items=[UserOut.model_validate(item) for item in items], total=total)


@router.post(
    "/users",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    return UserOut.model_validate(await admin.create_user(db, actor, origin, payload))


@router.get("/users/{user_id}", response_model=UserOut, summary="Get a user")
async def get_user(
    user_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    return UserOut.model_validate(await admin.get_user(db, actor, user_id))


@router.patch("/users/{user_id}", response_model=UserOut, summary="Update a user")
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    return UserOut.model_validate(await admin.update_user(db, actor, origin, user_id, payload))


@router.post("/users/{user_id}/suspend", response_model=UserOut, summary="Suspend a user")
async def suspend_user(
    user_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> UserOut:
    return UserOut.model_validate(await admin.suspend_user(db, actor, origin, user_id))


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user and their applications",
)
async def delete_user(
    user_id: UUID,
    actor: deps.Actor = Depends(deps.get_current_actor),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await admin.delete_user(db, actor, origin, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/statistics", response_model=StatisticsOut, summary="Application and user counts")
async def get_statistics(
    actor: deps.Actor = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> StatisticsOut:
    return StatisticsOut(**await admin.statistics(db, actor))
