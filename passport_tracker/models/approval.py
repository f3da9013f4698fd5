import uuid

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from passport_tracker.db.base import Base
from passport_tracker.schemas.common import ApprovalDecision, check_in


class ApprovalLog(Base):
    """Insert-only record of final decisions."""

    __tablename__ = "approval_logs"
    __table_args__ = (
        CheckConstraint(check_in("decision", ApprovalDecision), name="ck_approval_logs_decision"),
        CheckConstraint(
            "decision = 'approved' OR passport_number IS NULL",
            name="ck_approval_logs_passport_only_when_approved",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    decision = Column(String(20), nullable=False)
    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comments = Column(Text, nullable=True)
    passport_number = Column(String(20), nullable=True, unique=True)
    issue_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    decision_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
