import uuid

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Time, func
from sqlalchemy.dialects.postgresql import UUID

from passport_tracker.db.base import Base
from passport_tracker.schemas.common import TokenStatus, check_in


class Token(Base):
    __tablename__ = "tokens"
    __table_args__ = (CheckConstraint(check_in("status", TokenStatus), name="ck_tokens_status"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_number = Column(String(30), nullable=False, unique=True)
    appointment_date = Column(Date, nullable=True)
    appointment_time = Column(Time, nullable=True)
    office_location = Column(String(255), nullable=True)
    valid_until = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=TokenStatus.ACTIVE.value, index=True)
    issued_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    issued_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
