from __future__ import annotations

from typing import Iterable
from uuid import UUID

from passport_tracker.api import deps
from passport_tracker.core.permissions import Operation
from passport_tracker.schemas.common import Role
from passport_tracker.services.errors import UnauthorizedError

STAFF_ROLES = frozenset(
    {
        Role.ADMIN,
        Role.TOKEN,
        Role.PHOTO,
        Role.VERIFICATION,
        Role.PROCESSING,
        Role.APPROVAL,
    }
)


def _roles(*roles: Role) -> frozenset[Role]:
    return frozenset(roles)


# Declarative allow-list: every operation names the roles that may perform it.
OPERATION_ROLES: dict[Operation, frozenset[Role]] = {
    Operation.APPLICATION_SUBMIT: _roles(Role.USER),
    Operation.TOKEN_ISSUE: _roles(Role.TOKEN, Role.ADMIN),
    Operation.PHOTO_SIGN_UPLOAD: _roles(Role.USER, Role.PHOTO, Role.ADMIN),
    Operation.PHOTO_SIGN_VALIDATE: _roles(Role.PHOTO, Role.ADMIN),
    Operation.VERIFICATION_UPDATE: _roles(Role.VERIFICATION, Role.ADMIN),
    Operation.PROCESSING_UPDATE: _roles(Role.PROCESSING, Role.ADMIN),
    Operation.APPROVAL_PROCESS: _roles(Role.APPROVAL, Role.ADMIN),
    Operation.APPROVAL_BULK: _roles(Role.APPROVAL, Role.ADMIN),
    Operation.APPLICATION_STATUS_UPDATE: _roles(
        Role.ADMIN, Role.APPROVAL, Role.PROCESSING, Role.VERIFICATION
    ),
    Operation.APPLICATION_COMPLETE: _roles(Role.ADMIN, Role.APPROVAL),
    Operation.APPLICATION_VIEW_OWN: _roles(Role.USER),
    Operation.APPLICATION_VIEW_ALL: STAFF_ROLES,
    Operation.TOKEN_QUEUE_VIEW: _roles(Role.TOKEN, Role.ADMIN),
    Operation.PHOTO_SIGN_QUEUE_VIEW: _roles(Role.PHOTO, Role.ADMIN),
    Operation.VERIFICATION_QUEUE_VIEW: _roles(Role.VERIFICATION, Role.ADMIN),
    Operation.PROCESSING_QUEUE_VIEW: _roles(Role.PROCESSING, Role.ADMIN),
    Operation.APPROVAL_QUEUE_VIEW: _roles(Role.APPROVAL, Role.ADMIN),
    Operation.USER_VIEW: _roles(Role.ADMIN),
    Operation.USER_MANAGE: _roles(Role.ADMIN),
    Operation.AUDIT_LOG_VIEW: _roles(Role.ADMIN),
    Operation.STATISTICS_VIEW: _roles(Role.ADMIN),
}

# Role ``user`` may only act on applications it owns for these.
OWNER_SCOPED = frozenset({Operation.PHOTO_SIGN_UPLOAD, Operation.APPLICATION_VIEW_OWN})


def check_permission(role: str, operation: Operation) -> bool:
    try:
        parsed = Role(role)
    except ValueError:
        return False
    return parsed in OPERATION_ROLES.get(operation, frozenset())


def allowed_operations(role: str) -> list[str]:
    return [op.value for op in Operation if check_permission(role, op)]


def require(actor: deps.Actor, operation: Operation, *, owner_id: UUID | None = None) -> None:
    if not check_permission(actor.role, operation):
        raise UnauthorizedError(
            f"Role '{actor.role}' may not perform {operation.value}",
            {"operation": operation.value, "role": actor.role},
        )
    if (
        operation in OWNER_SCOPED
        and actor.role == Role.USER.value
        and owner_id is not None
        and owner_id != actor.id
    ):
        raise UnauthorizedError(
            "Applicants may only act on their own applications",
            {"operation": operation.value},
        )


def require_any(actor: deps.Actor, operations: Iterable[Operation]) -> None:
    ops = list(operations)
    if not any(check_permission(actor.role, op) for op in ops):
        raise UnauthorizedError(
            f"Role '{actor.role}' may not perform this action",
            {"operations": [op.value for op in ops], "role": actor.role},
        )


def require_application_access(actor: deps.Actor, owner_id: UUID) -> None:
    """Staff see every application; applicants only their own."""
    if check_permission(actor.role, Operation.APPLICATION_VIEW_ALL):
        return
    require(actor, Operation.APPLICATION_VIEW_OWN, owner_id=owner_id)
