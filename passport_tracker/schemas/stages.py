from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from passport_tracker.models.types import mask_identifier
from passport_tracker.schemas.applications import ApplicationOut
from passport_tracker.schemas.common import PoliceVerificationStatus, VerificationStatus


# Tokens

class TokenIssue(BaseModel):
    application_id: UUID
    appointment_date: date | None = None
    appointment_time: time | None = None
    office_location: str | None = Field(default=None, max_length=255)
    valid_until: date | None = None


class TokenOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    token_number: str
    appointment_date: date | None = None
    appointment_time: time | None = None
    office_location: str | None = None
    valid_until: date
    status: str
    issued_by: UUID | None = None
    issued_at: datetime | None = None


class TokenIssueResponse(BaseModel):
    application: ApplicationOut
    token: TokenOut


class TokenListResponse(BaseModel):
    items: list[TokenOut]
    total: int


# Photo and signature

class PhotoSignUpload(BaseModel):
    application_id: UUID
    photo_path: str | None = Field(default=None, max_length=500)
    signature_path: str | None = Field(default=None, max_length=500)


class PhotoSignValidate(BaseModel):
    photo_approved: bool
    signature_approved: bool
    photo_remarks: str | None = None
    signature_remarks: str | None = None


class PhotoSignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    photo_path: str | None = None
    signature_path: str | None = None
    photo_approved: bool
    signature_approved: bool
    photo_remarks: str | None = None
    signature_remarks: str | None = None
    validation_status: str
    validated_by: UUID | None = None
    validated_at: datetime | None = None


class PhotoSignResponse(BaseModel):
    application: ApplicationOut
    photo_sign: PhotoSignOut


# Document verification

class VerificationUpdate(BaseModel):
    aadhaar_verified: bool | None = None
    pan_verified: bool | None = None
    dl_verified: bool | None = None
    voter_id_verified: bool | None = None
    cctns_verified: bool | None = None
    verification_status: VerificationStatus | None = None
    remarks: str | None = None


class DocumentVerdict(BaseModel):
    verified: bool = True


class VerificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    aadhaar_verified: bool
    pan_verified: bool
    dl_verified: bool
    voter_id_verified: bool
    cctns_verified: bool
    verification_status: str
    remarks: str | None = None
    verified_by: UUID | None = None
    verified_at: datetime | None = None


class VerificationResponse(BaseModel):
    application: ApplicationOut
    verification: VerificationOut


# Police and reference processing

class ProcessingUpdate(BaseModel):
    police_verification_status: PoliceVerificationStatus | None = None
    police_station: str | None = Field(default=None, max_length=255)
    police_remarks: str | None = None
    reference1_name: str | None = Field(default=None, max_length=100)
    reference1_aadhaar: str | None = Field(default=None, pattern=r"^\d{12}$")
    reference1_verified: bool | None = None
    reference2_name: str | None = Field(default=None, max_length=100)
    reference2_aadhaar: str | None = Field(default=None, pattern=r"^\d{12}$")
    reference2_verified: bool | None = None


class ReferenceVerdict(BaseModel):
    verified: bool = True


class ProcessingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_id: UUID
    police_verification_status: str
    police_station: str | None = None
    police_remarks: str | None = None
    reference1_name: str | None = None
    reference1_aadhaar: str | None = None
    reference1_verified: bool
    reference2_name: str | None = None
    reference2_aadhaar: str | None = None
    reference2_verified: bool
    processed_by: UUID | None = None
    processed_at: datetime | None = None

    @field_validator("reference1_aadhaar", "reference2_aadhaar")
    @classmethod
    def _mask(cls, value: str | None) -> str | None:
        return mask_identifier(value)


class ProcessingResponse(BaseModel):
    application: ApplicationOut
    processing: ProcessingOut
