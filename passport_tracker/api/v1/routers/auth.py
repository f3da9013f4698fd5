from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from passport_tracker.api import deps
from passport_tracker.core.limiter import limiter
from passport_tracker.core.security import create_access_token
from passport_tracker.core.settings import settings
from passport_tracker.db.session import get_db
from passport_tracker.models import User
from passport_tracker.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from passport_tracker.schemas.users import UserOut
from passport_tracker.services import accounts, authz

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(str(user.id), user.role),
        user=UserOut.model_validate(user),
        permissions=authz.allowed_operations(user.role),
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an applicant account",
)
@limiter.limit(lambda: settings.login_rate_limit)
async def register(
    payload: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
) -> TokenResponse:
    user = await accounts.register_user(db, origin, payload)
    return _token_response(user)


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for an access token")
@limiter.limit(lambda: settings.login_rate_limit)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    origin: deps.RequestOrigin = Depends(deps.get_request_origin),
) -> TokenResponse:
    user = await accounts.authenticate(db, origin, credentials.username, credentials.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive user")
    return _token_response(user)


@router.get("/me", response_model=UserOut, summary="Current user profile")
async def read_current_user(current_user: User = Depends(deps.get_current_user)) -> UserOut:
    return UserOut.model_validate(current_user)
