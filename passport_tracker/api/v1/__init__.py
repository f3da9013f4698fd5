from fastapi import APIRouter

from passport_tracker.api.v1.routers import (
    admin,
    applications,
    approvals,
    audit_logs,
    auth,
    health,
    photo_sign,
    processing,
    tokens,
    verification,
)

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(applications.router)
api_router.include_router(tokens.router)
api_router.include_router(photo_sign.router)
api_router.include_router(verification.router)
api_router.include_router(processing.router)
api_router.include_router(approvals.router)
api_router.include_router(admin.router)
api_router.include_router(audit_logs.router)

__all__ = ["api_router"]
