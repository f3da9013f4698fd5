import pytest

from conftest import (
    FakeAsyncSession,
    FakeResult,
    entity_handler,
    make_actor,
    make_application,
    make_processing,
)

from passport_tracker.models import Application, ProcessingRecord
from passport_tracker.schemas.common import (
    ApplicationStatus,
    PoliceVerificationStatus,
    Role,
    Stage,
)
from passport_tracker.schemas.stages import ProcessingOut, ProcessingUpdate
from passport_tracker.services import processing
from passport_tracker.services.errors import PreconditionFailedError, ValidationFailedError


def _at_police_verification(**record_overrides):
    application = make_application(stage=Stage.POLICE_VERIFICATION, status=ApplicationStatus.IN_PROGRESS)
    record = make_processing(application, **record_overrides)
    db = FakeAsyncSession()
    db.on_execute(entity_handler(Application, FakeResult(scalar=application)))
    db.on_execute(entity_handler(ProcessingRecord, FakeResult(scalar=record)))
    return db, application, record


def _stage_changes(db: FakeAsyncSession) -> list[dict]:
    return [
        entry.changes["application.current_stage"]
        for entry in db.audit_entries
        if entry.changes and "application.current_stage" in entry.changes
    ]


@pytest.mark.parametrize(
    ("police", "ref1", "ref2", "expected"),
    [
        ("clear", True, True, True),
        ("clear", True, False, False),
        ("adverse", True, True, False),
        ("in_progress", True, True, False),
    ],
)
def test_should_advance(police, ref1, ref2, expected):
    application = make_application()
    record = make_processing(
        application,
        police_verification_status=police,
        reference1_verified=ref1,
        reference2_verified=ref2,
    )
    assert processing.should_advance(record) is expected


@pytest.mark.asyncio
@pytest.mark.parametrize("order", [(1, 2), (2, 1)])
async def test_reference_updates_advance_exactly_once(origin, order):
    db, application, record = _at_police_verification(
        police_verification_status=PoliceVerificationStatus.CLEAR.value
    )
    actor = make_actor(Role.PROCESSING)

    for reference_number in order:
        await processing.verify_reference(db, actor, origin, application.id, reference_number)

    assert application.current_stage == Stage.FINAL_APPROVAL.value
    assert len(db.audit_entries) == 2
    assert _stage_changes(db) == [{"from": "police_verification", "to": "final_approval"}]
    assert db.audit_entries[-1].action == "processing.reference"


@pytest.mark.asyncio
async def test_police_clearance_last_also_advances(origin):
    db, application, record = _at_police_verification(reference1_verified=True, reference2_verified=True)

    await processing.update_processing(
        db,
        make_actor(Role.PROCESSING),
        origin,
        application.id,
        ProcessingUpdate(police_verification_status="clear", police_station="Shivajinagar"),
    )

    assert record.police_station == "Shivajinagar"
    assert application.current_stage == Stage.FINAL_APPROVAL.value
    assert len(_stage_changes(db)) == 1


@pytest.mark.asyncio
async def test_adverse_report_holds_stage(origin):
    db, application, record = _at_police_verification(reference1_verified=True, reference2_verified=True)

    await processing.update_processing(
        db,
        make_actor(Role.ADMIN),
        origin,
        application.id,
        ProcessingUpdate(police_verification_status="adverse", police_remarks="pending case"),
    )

    assert application.current_stage == Stage.POLICE_VERIFICATION.value
    assert _stage_changes(db) == []


@pytest.mark.asyncio
async def test_reference_identity_numbers_stay_out_of_audit(origin):
    db, application, record = _at_police_verification()

    await processing.update_processing(
        db,
        make_actor(Role.PROCESSING),
        origin,
        application.id,
        ProcessingUpdate(reference1_aadhaar="999988887777"),
    )

    assert record.reference1_aadhaar == "999988887777"
    [entry] = db.audit_entries
    assert "reference1_aadhaar" not in entry.after["processing"]
    assert "reference1_aadhaar" not in entry.before["processing"]


@pytest.mark.asyncio
async def test_reference_number_must_be_one_or_two(origin):
    with pytest.raises(ValidationFailedError):
        await processing.verify_reference(
            FakeAsyncSession(), make_actor(Role.PROCESSING), origin, make_application().id, 3
        )


def test_processing_out_masks_identity_numbers():
    application = make_application()
    out = ProcessingOut.model_validate(make_processing(application))
    assert out.reference1_aadhaar == "********1234"
    assert out.reference2_aadhaar == "********5678"


@pytest.mark.asyncio
async def test_held_application_does_not_reach_final_approval(origin):
    db, application, record = _at_police_verification(
        police_verification_status=PoliceVerificationStatus.CLEAR.value, reference1_verified=True
    )
    application.status = ApplicationStatus.ON_HOLD.value

    with pytest.raises(PreconditionFailedError):
        await processing.verify_reference(db, make_actor(Role.PROCESSING), origin, application.id, 2)

    assert record.reference2_verified is False
    assert application.current_stage == Stage.POLICE_VERIFICATION.value
    assert db.audit_entries == []
