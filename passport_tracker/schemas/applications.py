from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from passport_tracker.schemas.common import (
    ApplicationStatus,
    Gender,
    PassportType,
    Priority,
)


class ApplicationCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    place_of_birth: str = Field(min_length=1, max_length=100)
    gender: Gender
    email: EmailStr
    phone: str = Field(min_length=6, max_length=20)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    pincode: str = Field(pattern=r"^\d{6}$")
    passport_type: PassportType = PassportType.NORMAL
    priority: Priority = Priority.NORMAL

    @field_validator("date_of_birth")
    @classmethod
    def _not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("date_of_birth cannot be in the future")
        return value


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    remarks: str | None = None


class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    application_number: str
    user_id: UUID
    full_name: str
    date_of_birth: date
    place_of_birth: str
    gender: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    pincode: str
    passport_type: str
    status: str
    current_stage: str
    priority: str
    remarks: str | None = None
    version: int | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationListResponse(BaseModel):
    items: list[ApplicationOut]
    total: int
