from datetime import date
from uuid import uuid4

from conftest import FakeResult, entity_handler, make_application, make_photo_sign, make_user, sequence_handler

from passport_tracker.models import Application, PhotoSignValidation, Token, User
from passport_tracker.schemas.common import ApplicationStatus, Role, Stage


def test_unauthenticated_request_is_rejected(client, override_db):
    response = client.get("/api/v1/applications")
    assert response.status_code == 401
    body = response.json()
    assert body["code"] == "unauthenticated"
    assert body["data"] is None


def test_get_application_not_found(client, act_as):
    act_as(Role.ADMIN)
    application_id = uuid4()

    response = client.get(f"/api/v1/applications/{application_id}")

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "not_found"
    assert body["details"] == {"application_id": str(application_id)}


def test_get_application_for_owner(client, act_as, override_db):
    actor = act_as(Role.USER)
    application = make_application(user_id=actor.id)
    override_db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    response = client.get(f"/api/v1/applications/{application.id}")

    assert response.status_code == 200
    assert response.json()["application_number"] == application.application_number


def test_wrong_role_gets_403(client, act_as):
    act_as(Role.TOKEN)

    response = client.post(f"/api/v1/approval/{uuid4()}", json={"decision": "approved"})

    assert response.status_code == 403
    assert response.json()["code"] == "unauthorized"


def test_approval_precondition_failure_is_409(client, act_as, override_db):
    act_as(Role.APPROVAL)
    application = make_application(stage=Stage.POLICE_VERIFICATION, status=ApplicationStatus.IN_PROGRESS)
    override_db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    response = client.post(f"/api/v1/approval/{application.id}", json={"decision": "approved"})

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "precondition_failed"
    assert body["details"]["current_stage"] == "police_verification"
    assert override_db.commits == 0


def test_approve_returns_passport(client, act_as, override_db):
    act_as(Role.APPROVAL)
    application = make_application(stage=Stage.FINAL_APPROVAL, status=ApplicationStatus.IN_PROGRESS)
    override_db.on_execute(entity_handler(Application, FakeResult(scalar=application)))

    response = client.post(
        f"/api/v1/approval/{application.id}", json={"decision": "approved", "comments": "ok"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["application"]["status"] == "approved"
    assert body["approval"]["passport_number"].startswith("Z")


def test_invalid_submission_is_422(client, act_as):
    act_as(Role.USER)

    response = client.post("/api/v1/applications", json={"full_name": "Asha", "pincode": "12"})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_invalid_decision_is_422(client, act_as):
    act_as(Role.APPROVAL)

    response = client.post(f"/api/v1/approval/{uuid4()}", json={"decision": "maybe"})

    assert response.status_code == 422


def test_photo_validation_endpoint(client, act_as, override_db):
    act_as(Role.PHOTO)
    application = make_application(stage=Stage.PHOTO_VALIDATION, status=ApplicationStatus.IN_PROGRESS)
    record = make_photo_sign(application)
    override_db.on_execute(entity_handler(Application, FakeResult(scalar=application)))
    override_db.on_execute(entity_handler(PhotoSignValidation, FakeResult(scalar=record)))

    response = client.put(
        f"/api/v1/photo-sign/application/{application.id}",
        json={"photo_approved": True, "signature_approved": True},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["photo_sign"]["validation_status"] == "approved"
    assert body["application"]["current_stage"] == "document_verification"


def test_reference_number_out_of_range_is_422(client, act_as):
    act_as(Role.PROCESSING)

    response = client.put(f"/api/v1/processing/application/{uuid4()}/reference/3", json={})

    assert response.status_code == 422


def test_admin_cannot_delete_self(client, act_as):
    actor = act_as(Role.ADMIN)

    response = client.delete(f"/api/v1/admin/users/{actor.id}")

    assert response.status_code == 409
    assert response.json()["code"] == "self_action_forbidden"


def test_delete_user_returns_204(client, act_as, override_db):
    act_as(Role.ADMIN)
    target = make_user()
    override_db.on_execute(entity_handler(User, FakeResult(scalar=target)))

    response = client.delete(f"/api/v1/admin/users/{target.id}")

    assert response.status_code == 204
    assert override_db.deleted == [target]


def test_audit_log_requires_admin(client, act_as):
    act_as(Role.APPROVAL)

    response = client.get("/api/v1/admin/audit-logs")

    assert response.status_code == 403


def test_token_list_reports_total(client, act_as, override_db):
    act_as(Role.TOKEN)
    application = make_application(stage=Stage.TOKEN, status=ApplicationStatus.IN_PROGRESS)
    token = Token(
        id=uuid4(),
        application_id=application.id,
        token_number="TKN1700000000000001",
        valid_until=date(2024, 2, 14),
        status="active",
    )
    override_db.on_execute(sequence_handler([FakeResult(scalar=3), FakeResult(items=[token])]))

    response = client.get("/api/v1/tokens", params={"limit": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [item["token_number"] for item in body["items"]] == ["TKN1700000000000001"]
