from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    TOKEN = "token"
    PHOTO = "photo"
    VERIFICATION = "verification"
    PROCESSING = "processing"
    APPROVAL = "approval"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


TERMINAL_STATUSES = frozenset(
    {
        ApplicationStatus.APPROVED.value,
        ApplicationStatus.REJECTED.value,
        ApplicationStatus.COMPLETED.value,
    }
)


class Stage(str, Enum):
    APPLICATION = "application"
    TOKEN = "token"
    PHOTO_VALIDATION = "photo_validation"
    DOCUMENT_VERIFICATION = "document_verification"
    POLICE_VERIFICATION = "police_verification"
    FINAL_APPROVAL = "final_approval"
    COMPLETED = "completed"


# Pipeline order; a stage's index is its rank.
STAGE_ORDER: tuple[Stage, ...] = (
    Stage.APPLICATION,
    Stage.TOKEN,
    Stage.PHOTO_VALIDATION,
    Stage.DOCUMENT_VERIFICATION,
    Stage.POLICE_VERIFICATION,
    Stage.FINAL_APPROVAL,
    Stage.COMPLETED,
)


class Priority(str, Enum):
    NORMAL = "normal"
    TATKAL = "tatkal"
    URGENT = "urgent"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class PassportType(str, Enum):
    NORMAL = "normal"
    DIPLOMATIC = "diplomatic"
    OFFICIAL = "official"


class TokenStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class PhotoValidationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class PoliceVerificationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    CLEAR = "clear"
    ADVERSE = "adverse"


class ApprovalDecision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class DocumentType(str, Enum):
    AADHAAR = "aadhaar"
    PAN = "pan"
    DL = "dl"
    VOTER_ID = "voter_id"
    CCTNS = "cctns"

    @property
    def flag_column(self) -> str:
        return f"{self.value}_verified"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def check_in(column: str, enum_cls: type[Enum]) -> str:
    """Render a SQL ``IN`` check clause for an enum-backed string column."""
    quoted = ", ".join(f"'{value}'" for value in enum_values(enum_cls))
    return f"{column} IN ({quoted})"
