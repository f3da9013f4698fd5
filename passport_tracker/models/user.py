import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from passport_tracker.db.base import Base
from passport_tracker.schemas.common import Role, UserStatus, check_in


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(check_in("role", Role), name="ck_users_role"),
        CheckConstraint(check_in("status", UserStatus), name="ck_users_status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=Role.USER.value, index=True)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    applications = relationship(
        "Application",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __mapper_args__ = {"eager_defaults": True}

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value
