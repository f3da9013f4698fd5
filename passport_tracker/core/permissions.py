from enum import Enum


class Operation(str, Enum):
    # Lifecycle transitions
    APPLICATION_SUBMIT = "application.submit"
    TOKEN_ISSUE = "token.issue"
    PHOTO_SIGN_UPLOAD = "photo_sign.upload"
    PHOTO_SIGN_VALIDATE = "photo_sign.validate"
    VERIFICATION_UPDATE = "verification.update"
    PROCESSING_UPDATE = "processing.update"
    APPROVAL_PROCESS = "approval.process"
    APPROVAL_BULK = "approval.bulk"
    APPLICATION_STATUS_UPDATE = "application.status.update"
    APPLICATION_COMPLETE = "application.complete"

    # Reads
    APPLICATION_VIEW_OWN = "application.view_own"
    APPLICATION_VIEW_ALL = "application.view_all"
    TOKEN_QUEUE_VIEW = "token.queue.view"
    PHOTO_SIGN_QUEUE_VIEW = "photo_sign.queue.view"
    VERIFICATION_QUEUE_VIEW = "verification.queue.view"
    PROCESSING_QUEUE_VIEW = "processing.queue.view"
    APPROVAL_QUEUE_VIEW = "approval.queue.view"

    # Administration
    USER_VIEW = "user.view"
    USER_MANAGE = "user.manage"
    AUDIT_LOG_VIEW = "audit_log.view"
    STATISTICS_VIEW = "statistics.view"
