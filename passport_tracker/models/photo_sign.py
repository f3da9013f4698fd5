import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID

from passport_tracker.db.base import Base
from passport_tracker.schemas.common import PhotoValidationStatus, check_in


class PhotoSignValidation(Base):
    __tablename__ = "photo_sign_validations"
    __table_args__ = (
        CheckConstraint(
            check_in("validation_status", PhotoValidationStatus),
            name="ck_photo_sign_validation_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    photo_path = Column(String(500), nullable=True)
    signature_path = Column(String(500), nullable=True)
    photo_approved = Column(Boolean, nullable=False, default=False)
    signature_approved = Column(Boolean, nullable=False, default=False)
    photo_remarks = Column(Text, nullable=True)
    signature_remarks = Column(Text, nullable=True)
    validation_status = Column(
        String(20), nullable=False, default=PhotoValidationStatus.PENDING.value, index=True
    )
    validated_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    validated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
