from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(eq=False)
class LifecycleError(Exception):
    """Typed failure raised by workflow services and rendered by the API error handlers."""

    message: str
    details: dict = field(default_factory=dict)
    code: str = "lifecycle_error"
    status_code: ClassVar[int] = 400

    def __str__(self) -> str:
        return self.message


@dataclass(eq=False)
class NotFoundError(LifecycleError):
    code: str = "not_found"
    status_code: ClassVar[int] = 404


@dataclass(eq=False)
class UnauthorizedError(LifecycleError):
    code: str = "unauthorized"
    status_code: ClassVar[int] = 403


@dataclass(eq=False)
class ConflictError(LifecycleError):
    code: str = "conflict"
    status_code: ClassVar[int] = 409


@dataclass(eq=False)
class PreconditionFailedError(LifecycleError):
    code: str = "precondition_failed"
    status_code: ClassVar[int] = 409


@dataclass(eq=False)
class ValidationFailedError(LifecycleError):
    code: str = "validation_error"
    status_code: ClassVar[int] = 422


@dataclass(eq=False)
class StorageFailureError(LifecycleError):
    code: str = "storage_failure"
    status_code: ClassVar[int] = 503
