import pytest

from conftest import (
    FakeAsyncSession,
    FakeResult,
    entity_handler,
    make_actor,
    make_user,
)

from passport_tracker.models import User
from passport_tracker.schemas.common import Role, UserStatus
from passport_tracker.schemas.users import UserCreate, UserUpdate
from passport_tracker.services import accounts, admin
from passport_tracker.services.errors import ConflictError, NotFoundError, UnauthorizedError


@pytest.fixture(autouse=True)
def _fast_hash(monkeypatch):
    monkeypatch.setattr(accounts, "get_password_hash", lambda password: f"hashed::{password}")


@pytest.mark.asyncio
async def test_create_user_with_staff_role(origin):
    db = FakeAsyncSession()
    actor = make_actor(Role.ADMIN)

    user = await admin.create_user(
        db,
        actor,
        origin,
        UserCreate(
            username="verifier1",
            email="Verifier1@Passport.gov",
            password="s3cret-pass",
            full_name="Verifier One",
            role=Role.VERIFICATION,
        ),
    )

    assert user.role == "verification"
    assert user.email == "verifier1@passport.gov"
    assert user.hashed_password == "hashed::s3cret-pass"
    [entry] = db.audit_entries
    assert entry.action == "user.create"
    assert entry.actor_id == actor.id
    assert "hashed_password" not in entry.after["user"]


@pytest.mark.asyncio
async def test_create_user_rejects_duplicate_username(origin):
    db = FakeAsyncSession()
    db.on_execute(entity_handler(User, FakeResult(items=[make_user(username="taken")])))

    with pytest.raises(ConflictError) as excinfo:
        await admin.create_user(
            db,
            make_actor(Role.ADMIN),
            origin,
            UserCreate(username="taken", email="new@example.com", password="password1", full_name="New"),
        )

    assert excinfo.value.code == "duplicate_username"
    assert db.added == []


@pytest.mark.asyncio
async def test_update_user_changes_role_and_password(origin):
    target = make_user(role=Role.USER)
    db = FakeAsyncSession()
    db.on_execute(entity_handler(User, FakeResult(scalar=target)))

    user = await admin.update_user(
        db,
        make_actor(Role.ADMIN),
        origin,
        target.id,
        UserUpdate(role=Role.PHOTO, password="another-pass"),
    )

    assert user.role == "photo"
    assert user.hashed_password == "hashed::another-pass"
    [entry] = db.audit_entries
    assert entry.changes["user.role"] == {"from": "user", "to": "photo"}


@pytest.mark.asyncio
async def test_suspend_user(origin):
    target = make_user()
    db = FakeAsyncSession()
    db.on_execute(entity_handler(User, FakeResult(scalar=target)))

    user = await admin.suspend_user(db, make_actor(Role.ADMIN), origin, target.id)

    assert user.status == UserStatus.SUSPENDED.value
    assert user.is_active is False


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(origin):
    actor = make_actor(Role.ADMIN)
    db = FakeAsyncSession()

    with pytest.raises(ConflictError) as excinfo:
        await admin.delete_user(db, actor, origin, actor.id)

    assert excinfo.value.code == "self_action_forbidden"
    assert db.deleted == []


@pytest.mark.asyncio
async def test_delete_user_is_audited(origin):
    target = make_user()
    db = FakeAsyncSession()
    db.on_execute(entity_handler(User, FakeResult(scalar=target)))

    await admin.delete_user(db, make_actor(Role.ADMIN), origin, target.id)

    assert db.deleted == [target]
    [entry] = db.audit_entries
    assert entry.action == "user.delete"
    assert entry.record_id == str(target.id)
    assert entry.before["user"]["username"] == target.username
    assert entry.after == {}


@pytest.mark.asyncio
async def test_delete_missing_user(origin):
    with pytest.raises(NotFoundError):
        await admin.delete_user(FakeAsyncSession(), make_actor(Role.ADMIN), origin, make_user().id)


@pytest.mark.asyncio
async def test_staff_cannot_manage_users(origin):
    with pytest.raises(UnauthorizedError):
        await admin.suspend_user(FakeAsyncSession(), make_actor(Role.APPROVAL), origin, make_user().id)


@pytest.mark.asyncio
async def test_statistics():
    db = FakeAsyncSession()
    counts = iter([10, 3, 2, 4, 1, 5])

    def _handler(stmt):
        if "group by" in str(stmt).lower():
            return FakeResult(rows=[("user", 7), ("admin", 1)])
        return FakeResult(scalar=next(counts))

    db.on_execute(_handler)

    stats = await admin.statistics(db, make_actor(Role.ADMIN))

    assert stats == {
        "total": 10,
        "approved": 3,
        "rejected": 2,
        "in_progress": 4,
        "on_hold": 1,
        "today": 5,
        "users_by_role": {"user": 7, "admin": 1},
    }
