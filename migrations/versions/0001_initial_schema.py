"""Create users, applications, stage records and audit log"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()
    )


def _application_fk() -> sa.Column:
    return _uuid(
        "application_id",
        sa.ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )


def _user_ref(name: str) -> sa.Column:
    return _uuid(name, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid("id", primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("last_login_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
        sa.UniqueConstraint("username", name="users_username_key"),
        sa.UniqueConstraint("email", name="users_email_key"),
        sa.CheckConstraint(
            "role IN ('user', 'admin', 'token', 'photo', 'verification', 'processing', 'approval')",
            name="ck_users_role",
        ),
        sa.CheckConstraint("status IN ('active', 'inactive', 'suspended')", name="ck_users_status"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "applications",
        _uuid("id", primary_key=True),
        sa.Column("application_number", sa.String(length=30), nullable=False),
        _uuid("user_id", sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("place_of_birth", sa.String(length=100), nullable=False),
        sa.Column("gender", sa.String(length=10), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=100), nullable=False),
        sa.Column("pincode", sa.String(length=10), nullable=False),
        sa.Column("passport_type", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="submitted"),
        sa.Column("current_stage", sa.String(length=30), nullable=False, server_default="application"),
        sa.Column("priority", sa.String(length=10), nullable=False, server_default="normal"),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
        sa.UniqueConstraint("application_number", name="applications_application_number_key"),
        sa.CheckConstraint(
            "status IN ('draft', 'submitted', 'in_progress', 'approved', 'rejected', 'on_hold', 'completed')",
            name="ck_applications_status",
        ),
        sa.CheckConstraint(
            "current_stage IN ('application', 'token', 'photo_validation', 'document_verification', "
            "'police_verification', 'final_approval', 'completed')",
            name="ck_applications_stage",
        ),
        sa.CheckConstraint("priority IN ('normal', 'tatkal', 'urgent')", name="ck_applications_priority"),
        sa.CheckConstraint("gender IN ('Male', 'Female', 'Other')", name="ck_applications_gender"),
        sa.CheckConstraint(
            "passport_type IN ('normal', 'diplomatic', 'official')",
            name="ck_applications_passport_type",
        ),
        sa.CheckConstraint("version >= 1", name="ck_applications_version_positive"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_current_stage", "applications", ["current_stage"])

    op.create_table(
        "tokens",
        _uuid("id", primary_key=True),
        _application_fk(),
        sa.Column("token_number", sa.String(length=30), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=True),
        sa.Column("appointment_time", sa.Time(), nullable=True),
        sa.Column("office_location", sa.String(length=255), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        _user_ref("issued_by"),
        sa.Column("issued_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("token_number", name="tokens_token_number_key"),
        sa.CheckConstraint(
            "status IN ('active', 'used', 'expired', 'cancelled')", name="ck_tokens_status"
        ),
    )
    op.create_index("ix_tokens_application_id", "tokens", ["application_id"])
    op.create_index("ix_tokens_status", "tokens", ["status"])

    op.create_table(
        "photo_sign_validations",
        _uuid("id", primary_key=True),
        _application_fk(),
        sa.Column("photo_path", sa.String(length=500), nullable=True),
        sa.Column("signature_path", sa.String(length=500), nullable=True),
        sa.Column("photo_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("signature_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("photo_remarks", sa.Text(), nullable=True),
        sa.Column("signature_remarks", sa.Text(), nullable=True),
        sa.Column("validation_status", sa.String(length=20), nullable=False, server_default="pending"),
        _user_ref("validated_by"),
        sa.Column("validated_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("application_id", name="photo_sign_validations_application_id_key"),
        sa.CheckConstraint(
            "validation_status IN ('pending', 'approved', 'rejected')",
            name="ck_photo_sign_validation_status",
        ),
    )
    op.create_index(
        "ix_photo_sign_validations_validation_status",
        "photo_sign_validations",
        ["validation_status"],
    )

    op.create_table(
        "verification_records",
        _uuid("id", primary_key=True),
        _application_fk(),
        sa.Column("aadhaar_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("pan_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("dl_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("voter_id_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cctns_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("verification_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("remarks", sa.Text(), nullable=True),
        _user_ref("verified_by"),
        sa.Column("verified_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("application_id", name="verification_records_application_id_key"),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'in_progress', 'completed', 'failed')",
            name="ck_verification_records_status",
        ),
    )
    op.create_index(
        "ix_verification_records_verification_status",
        "verification_records",
        ["verification_status"],
    )

    op.create_table(
        "processing_records",
        _uuid("id", primary_key=True),
        _application_fk(),
        sa.Column(
            "police_verification_status", sa.String(length=20), nullable=False, server_default="pending"
        ),
        sa.Column("police_station", sa.String(length=255), nullable=True),
        sa.Column("police_remarks", sa.Text(), nullable=True),
        sa.Column("reference1_name", sa.String(length=100), nullable=True),
        sa.Column("reference1_aadhaar", sa.LargeBinary(), nullable=True),
        sa.Column("reference1_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("reference2_name", sa.String(length=100), nullable=True),
        sa.Column("reference2_aadhaar", sa.LargeBinary(), nullable=True),
        sa.Column("reference2_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _user_ref("processed_by"),
        sa.Column("processed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("application_id", name="processing_records_application_id_key"),
        sa.CheckConstraint(
            "police_verification_status IN ('pending', 'in_progress', 'clear', 'adverse')",
            name="ck_processing_records_police_status",
        ),
    )
    op.create_index(
        "ix_processing_records_police_verification_status",
        "processing_records",
        ["police_verification_status"],
    )

    op.create_table(
        "approval_logs",
        _uuid("id", primary_key=True),
        _application_fk(),
        sa.Column("decision", sa.String(length=20), nullable=False),
        _user_ref("approved_by"),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("passport_number", sa.String(length=20), nullable=True),
        sa.Column("issue_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column(
            "decision_date", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("passport_number", name="approval_logs_passport_number_key"),
        sa.CheckConstraint(
            "decision IN ('approved', 'rejected', 'returned')", name="ck_approval_logs_decision"
        ),
        sa.CheckConstraint(
            "decision = 'approved' OR passport_number IS NULL",
            name="ck_approval_logs_passport_only_when_approved",
        ),
    )
    op.create_index("ix_approval_logs_application_id", "approval_logs", ["application_id"])

    op.create_table(
        "audit_logs",
        _uuid("id", primary_key=True),
        _uuid("actor_id", nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity", sa.String(length=100), nullable=False),
        sa.Column("record_id", sa.String(length=255), nullable=False),
        sa.Column("before", sa.JSON(), nullable=True),
        sa.Column("after", sa.JSON(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("schema_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        _created_at(),
    )
    for column in ("actor_id", "action", "entity", "record_id", "created_at"):
        op.create_index(f"ix_audit_logs_{column}", "audit_logs", [column])


def downgrade() -> None:
    for column in ("actor_id", "action", "entity", "record_id", "created_at"):
        op.drop_index(f"ix_audit_logs_{column}", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_approval_logs_application_id", table_name="approval_logs")
    op.drop_table("approval_logs")
    op.drop_index("ix_processing_records_police_verification_status", table_name="processing_records")
    op.drop_table("processing_records")
    op.drop_index("ix_verification_records_verification_status", table_name="verification_records")
    op.drop_table("verification_records")
    op.drop_index("ix_photo_sign_validations_validation_status", table_name="photo_sign_validations")
    op.drop_table("photo_sign_validations")
    op.drop_index("ix_tokens_status", table_name="tokens")
    op.drop_index("ix_tokens_application_id", table_name="tokens")
    op.drop_table("tokens")
    op.drop_index("ix_applications_current_stage", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_table("applications")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
