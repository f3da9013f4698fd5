import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from passport_tracker.db.base import Base
from passport_tracker.schemas.common import (
    ApplicationStatus,
    Gender,
    PassportType,
    Priority,
    Stage,
    check_in,
)


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        CheckConstraint(check_in("status", ApplicationStatus), name="ck_applications_status"),
        CheckConstraint(check_in("current_stage", Stage), name="ck_applications_stage"),
        CheckConstraint(check_in("priority", Priority), name="ck_applications_priority"),
        CheckConstraint(check_in("gender", Gender), name="ck_applications_gender"),
        CheckConstraint(check_in("passport_type", PassportType), name="ck_applications_passport_type"),
        CheckConstraint("version >= 1", name="ck_applications_version_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    application_number = Column(String(30), nullable=False, unique=True)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Applicant snapshot, fixed at submission.
    full_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    place_of_birth = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(10), nullable=False)
    passport_type = Column(String(20), nullable=False, default=PassportType.NORMAL.value)

    status = Column(String(20), nullable=False, default=ApplicationStatus.SUBMITTED.value, index=True)
    current_stage = Column(String(30), nullable=False, default=Stage.APPLICATION.value, index=True)
    priority = Column(String(10), nullable=False, default=Priority.NORMAL.value)
    remarks = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    owner = relationship("User", back_populates="applications")

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}
