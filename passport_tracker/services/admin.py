from __future__ import annotations

import uuid
from datetime import datetime, time, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.core.settings import settings
from passport_tracker.models import Application, User
from passport_tracker.schemas.common import ApplicationStatus, UserStatus
from passport_tracker.schemas.users import UserCreate, UserUpdate
from passport_tracker.services import accounts, audit, authz, lifecycle
from passport_tracker.services.errors import ConflictError, NotFoundError


async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found", {"user_id": str(user_id)})
    return user


async def list_users(
    db: AsyncSession,
    actor: deps.Actor,
    *,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> tuple[list[User], int]:
    authz.require(actor, Operation.USER_VIEW)
    conditions: list[Any] = []
    if role:
        conditions.append(User.role == role)
    if status:
        conditions.append(User.status == status)
    if search:
        pattern = f"%{search}%"
        conditions.append(
            User.username.ilike(pattern) | User.email.ilike(pattern) | User.full_name.ilike(pattern)
        )
    total = int(
        (await db.execute(select(func.count()).select_from(User).where(*conditions))).scalar_one() or 0
    )
    stmt = (
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(offset)
        .limit(limit or settings.default_page_size)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all()), total


async def get_user(db: AsyncSession, actor: deps.Actor, user_id: uuid.UUID) -> User:
    authz.require(actor, Operation.USER_VIEW)
    return await _get_user(db, user_id)


async def create_user(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    payload: UserCreate,
) -> User:
    authz.require(actor, Operation.USER_MANAGE)
    email = str(payload.email).lower()
    await accounts.ensure_unique_identity(db, username=payload.username, email=email)
    now = lifecycle.utcnow()
    user = User(
        id=uuid.uuid4(),
        username=payload.username,
        email=email,
        hashed_password=accounts.hash_password(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
        role=payload.role.value,
        status=payload.status.value,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="user.create",
        entity="user",
        record_id=user.id,
        before=None,
        after={"user": user},
    )
    return user


async def update_user(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    user_id: uuid.UUID,
    payload: UserUpdate,
) -> User:
    authz.require(actor, Operation.USER_MANAGE)
    user = await _get_user(db, user_id)
    changes = payload.model_dump(exclude_unset=True, mode="json")
    if "email" in changes and changes["email"]:
        changes["email"] = changes["email"].lower()
        await accounts.ensure_unique_identity(db, email=changes["email"], exclude_id=user.id)
    before = audit.snapshot_entities({"user": user})

    password = changes.pop("password", None)
    if password:
        user.hashed_password = accounts.hash_password(password)
    for name, value in changes.items():
        if value is not None:
            setattr(user, name, value)
    user.updated_at = lifecycle.utcnow()

    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="user.update",
        entity="user",
        record_id=user.id,
        before=before,
        after={"user": user},
    )
    return user


async def suspend_user(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    user_id: uuid.UUID,
) -> User:
    authz.require(actor, Operation.USER_MANAGE)
    if user_id == actor.id:
        raise ConflictError("Administrators cannot suspend their own account", code="self_action_forbidden")
    user = await _get_user(db, user_id)
    before = audit.snapshot_entities({"user": user})
    user.status = UserStatus.SUSPENDED.value
    user.updated_at = lifecycle.utcnow()
    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="user.suspend",
        entity="user",
        record_id=user.id,
        before=before,
        after={"user": user},
    )
    return user


async def delete_user(
    db: AsyncSession,
    actor: deps.Actor,
    origin: deps.RequestOrigin | None,
    user_id: uuid.UUID,
) -> None:
    """Delete a user; their applications and stage records go with them via ON DELETE CASCADE."""
    authz.require(actor, Operation.USER_MANAGE)
    if user_id == actor.id:
        raise ConflictError(
            "Administrators cannot delete their own account",
            {"user_id": str(user_id)},
            code="self_action_forbidden",
        )
    user = await _get_user(db, user_id)
    before = audit.snapshot_entities({"user": user})
    await db.delete(user)
    await lifecycle.commit_transition(
        db,
        actor,
        origin,
        action="user.delete",
        entity="user",
        record_id=user_id,
        before=before,
        after={},
    )


async def statistics(db: AsyncSession, actor: deps.Actor) -> dict[str, Any]:
    authz.require(actor, Operation.STATISTICS_VIEW)

    async def count(*conditions) -> int:
        stmt = select(func.count()).select_from(Application).where(*conditions)
        return int((await db.execute(stmt)).scalar_one() or 0)

    start_of_day = datetime.combine(lifecycle.utcnow().date(), time.min, tzinfo=timezone.utc)
    stats: dict[str, Any] = {
        "total": await count(),
        "approved": await count(Application.status == ApplicationStatus.APPROVED.value),
        "rejected": await count(Application.status == ApplicationStatus.REJECTED.value),
        "in_progress": await count(Application.status == ApplicationStatus.IN_PROGRESS.value),
        "on_hold": await count(Application.status == ApplicationStatus.ON_HOLD.value),
        "today": await count(Application.created_at >= start_of_day),
    }
    rows = (await db.execute(select(User.role, func.count()).group_by(User.role))).all()
    stats["users_by_role"] = {role: int(total) for role, total in rows}
    return stats
