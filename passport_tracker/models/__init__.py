from passport_tracker.models.user import User
from passport_tracker.models.application import Application
from passport_tracker.models.token import Token
from passport_tracker.models.photo_sign import PhotoSignValidation
from passport_tracker.models.verification import VerificationRecord
from passport_tracker.models.processing import ProcessingRecord
from passport_tracker.models.approval import ApprovalLog
from passport_tracker.models.audit_log import AuditLog

__all__ = [
    "User",
    "Application",
    "Token",
    "PhotoSignValidation",
    "VerificationRecord",
    "ProcessingRecord",
    "ApprovalLog",
    "AuditLog",
]
