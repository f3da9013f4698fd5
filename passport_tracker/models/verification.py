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
from passport_tracker.schemas.common import VerificationStatus, check_in


class VerificationRecord(Base):
    __tablename__ = "verification_records"
    __table_args__ = (
        CheckConstraint(
            check_in("verification_status", VerificationStatus),
            name="ck_verification_records_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    aadhaar_verified = Column(Boolean, nullable=False, default=False)
    pan_verified = Column(Boolean, nullable=False, default=False)
    dl_verified = Column(Boolean, nullable=False, default=False)
    voter_id_verified = Column(Boolean, nullable=False, default=False)
    cctns_verified = Column(Boolean, nullable=False, default=False)
    verification_status = Column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value, index=True
    )
    remarks = Column(Text, nullable=True)
    verified_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
