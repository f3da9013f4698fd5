from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.core.context import set_actor_id
from passport_tracker.core.security import decode_token
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.models import User


@dataclass(slots=True, frozen=True)
class Actor:
    id: UUID
    role: str


@dataclass(slots=True, frozen=True)
class RequestOrigin:
    ip_address: str | None = None
    user_agent: str | None = None


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _client_ip(request: Request) -> str | None:
    # Only the last ``proxies_count`` hops of X-Forwarded-For are trusted.
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and settings.proxies_count > 0:
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        if len(hops) >= settings.proxies_count:
            return hops[-settings.proxies_count]
    return request.client.host if request.client else None


async def get_request_origin(request: Request) -> RequestOrigin:
    user_agent = request.headers.get("user-agent")
    return RequestOrigin(
        ip_address=_client_ip(request),
        user_agent=user_agent[:512] if user_agent else None,
    )


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    try:
        payload = decode_token(token, expected_type="access")
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    user_sub = payload.get("sub")
    if not user_sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        user_id = UUID(str(user_sub))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return user


async def get_current_actor(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> Actor:
    set_actor_id(str(current_user.id))
    request.state.actor_id = str(current_user.id)
    return Actor(id=current_user.id, role=current_user.role)
