from sqlalchemy import CheckConstraint, UniqueConstraint

from passport_tracker.db.base import Base
from passport_tracker.models import (
    Application,
    ApprovalLog,
    PhotoSignValidation,
    ProcessingRecord,
    Token,
    User,
    VerificationRecord,
)
from passport_tracker.models.types import EncryptedString, mask_identifier


def _check_names(model) -> set[str]:
    return {c.name for c in model.__table__.constraints if isinstance(c, CheckConstraint)}


def test_all_tables_registered():
    assert {
        "users",
        "applications",
        "tokens",
        "photo_sign_validations",
        "verification_records",
        "processing_records",
        "approval_logs",
        "audit_logs",
    } <= set(Base.metadata.tables)


def test_application_uses_optimistic_versioning():
    assert Application.__mapper__.version_id_col is Application.__table__.c.version
    assert "ck_applications_stage" in _check_names(Application)
    assert "ck_applications_status" in _check_names(Application)


def test_identifiers_are_unique():
    assert Application.__table__.c.application_number.unique
    assert Token.__table__.c.token_number.unique
    assert ApprovalLog.__table__.c.passport_number.unique
    assert User.__table__.c.username.unique
    assert User.__table__.c.email.unique


def _single_record_per_application(model) -> bool:
    column = model.__table__.c.application_id
    if column.unique:
        return True
    return any(
        isinstance(c, UniqueConstraint) and list(c.columns.keys()) == ["application_id"]
        for c in model.__table__.constraints
    )


def test_stage_records_are_one_per_application():
    for model in (PhotoSignValidation, VerificationRecord, ProcessingRecord):
        assert _single_record_per_application(model), model.__tablename__


def test_application_rows_cascade_with_owner():
    [fk] = Application.__table__.c.user_id.foreign_keys
    assert fk.ondelete == "CASCADE"
    for model in (Token, PhotoSignValidation, VerificationRecord, ProcessingRecord, ApprovalLog):
        [fk] = model.__table__.c.application_id.foreign_keys
        assert fk.ondelete == "CASCADE", model.__tablename__
    assert User.applications.property.cascade.delete
    assert User.applications.property.cascade.delete_orphan


def test_passport_number_only_on_approvals():
    assert "ck_approval_logs_passport_only_when_approved" in _check_names(ApprovalLog)


def test_reference_identity_columns_are_encrypted():
    assert isinstance(ProcessingRecord.__table__.c.reference1_aadhaar.type, EncryptedString)
    assert isinstance(ProcessingRecord.__table__.c.reference2_aadhaar.type, EncryptedString)


def test_encrypted_string_round_trip():
    enc = EncryptedString()
    sealed = enc.process_bind_param("123412341234", None)
    assert sealed != b"123412341234"
    assert enc.process_result_value(sealed, None) == "123412341234"
    assert enc.process_bind_param(None, None) is None


def test_mask_identifier():
    assert mask_identifier("123412341234") == "********1234"
    assert mask_identifier("123") == "***"
    assert mask_identifier(None) is None
