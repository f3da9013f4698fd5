from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.common import ApprovalDecision


class ApprovalRequest(BaseModel):
    decision: ApprovalDecision
    comments: str | None = None


class BulkApprovalRequest(BaseModel):
    application_ids: list[UUID] = Field(min_length=1, max_length=100)
    comments: str | None = None


class ApprovalLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    decision: str
    approved_by: UUID | None = None
    comments: str | None = None
    passport_number: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    decision_date: datetime | None = None


class ApprovalResponse(BaseModel):
    application: ApplicationOut
    approval: ApprovalLogOut


class BulkApprovalSkip(BaseModel):
    application_id: UUID
    code: str
    reason: str


class BulkApprovalResponse(BaseModel):
    approved: list[ApprovalResponse]
    skipped: list[BulkApprovalSkip]
