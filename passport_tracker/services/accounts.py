from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.security import get_password_hash, verify_password
from passport_tracker.models import User
from passport_tracker.schemas.auth import RegisterRequest
from passport_tracker.schemas.common import Role, UserStatus
from passport_tracker.services import audit, lifecycle
from passport_tracker.services.errors import ConflictError, ValidationFailedError

logger = logging.getLogger(__name__)

_FAKE_HASH = "$2b$12$EixZaYVK1fsbw1ZfbX3OXePaWrn3ILAWO.P3K.fc8G2.0G7u6g.2"


def constant_time_verify(user_password_hash: Optional[str], password: str) -> bool:
    if user_password_hash:
        return verify_password(password, user_password_hash)
    # Dummy verification to equalize timing
    verify_password(password, _FAKE_HASH)
    return False


def hash_password(password: str) -> str:
    try:
        return get_password_hash(password)
    except ValueError as exc:
        raise ValidationFailedError(str(exc), {"field": "password"}) from exc


async def ensure_unique_identity(
    db: AsyncSession,
    *,
    username: str | None = None,
    email: str | None = None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return
    stmt = select(User).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    result = await db.execute(stmt)
    clash = result.scalars().first()
    if clash is None:
        return
    if username and clash.username == username:
        raise ConflictError("Username already taken", {"username": username}, code="duplicate_username")
    raise ConflictError("Email already registered", {"email": email}, code="duplicate_email")


async def register_user(
    db: AsyncSession,
    origin: deps.RequestOrigin | None,
    payload: RegisterRequest,
) -> User:
    """Self-service sign-up; always creates an active applicant account."""
    email = str(payload.email).lower()
    await ensure_unique_identity(db, username=payload.username, email=email)
    now = lifecycle.utcnow()
    user = User(
        id=uuid.uuid4(),
        username=payload.username,
        email=email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
        phone=payload.phone,
        role=Role.USER.value,
        status=UserStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await lifecycle.commit_transition(
        db,
        deps.Actor(id=user.id, role=user.role),
        origin,
        action="user.register",
        entity="user",
        record_id=user.id,
        before=None,
        after={"user": user},
    )
    return user


async def authenticate(
    db: AsyncSession,
    origin: deps.RequestOrigin | None,
    username: str,
    password: str,
) -> User | None:
    """Return the user for valid credentials, or None. Status is checked by the caller."""
    result = await db.execute(
        select(User).where(or_(User.username == username, User.email == username.lower()))
    )
    user = result.scalars().first()
    if not constant_time_verify(user.hashed_password if user else None, password):
        logger.info("Failed login for %s", username)
        return None
    if not user.is_active:
        return user

    before = audit.snapshot_entities({"user": user})
    now = lifecycle.utcnow()
    user.last_login_at = now
    user.updated_at = now
    await lifecycle.commit_transition(
        db,
        deps.Actor(id=user.id, role=user.role),
        origin,
        action="user.login",
        entity="user",
        record_id=user.id,
        before=before,
        after={"user": user},
    )
    return user
