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
from passport_tracker.models.types import EncryptedString
from passport_tracker.schemas.common import PoliceVerificationStatus, check_in


class ProcessingRecord(Base):
    __tablename__ = "processing_records"
    __table_args__ = (
        CheckConstraint(
            check_in("police_verification_status", PoliceVerificationStatus),
            name="ck_processing_records_police_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    police_verification_status = Column(
        String(20), nullable=False, default=PoliceVerificationStatus.PENDING.value, index=True
    )
    police_station = Column(String(255), nullable=True)
    police_remarks = Column(Text, nullable=True)
    reference1_name = Column(String(100), nullable=True)
    reference1_aadhaar = Column(EncryptedString(), nullable=True)
    reference1_verified = Column(Boolean, nullable=False, default=False)
    reference2_name = Column(String(100), nullable=True)
    reference2_aadhaar = Column(EncryptedString(), nullable=True)
    reference2_verified = Column(Boolean, nullable=False, default=False)
    processed_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
