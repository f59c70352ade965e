"""Tests for ``UserService``: registration, lookups, updates and deletion."""

import pytest

from user_directory_api.app.core.db import get_connection
from user_directory_api.app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from user_directory_api.app.schemas.user import ColorBackground, UserCreate, UserUpdate
from user_directory_api.app.services.audit_service import AuditService
from user_directory_api.app.services import user_service
from user_directory_api.app.services.friend_service import FriendService
from user_directory_api.app.services.user_service import UserService
from user_directory_api.app.services.zone_service import ZoneService
from user_directory_api.app.schemas.zone import ZoneCreate


pytestmark = pytest.mark.asyncio

SUPER_ADMIN, ADMIN, USER = 1, 2, 3


class TestCreate:

    async def test_create_assigns_defaults(self, db):
        user = await UserService.create_user(
            UserCreate(login="StyleSam", password="secret123", name="Sam", background="#000")
        )
        assert user.login == "stylesam"
        assert user.role_id == USER
        assert user.friends == []
        assert user.socials == []
        assert user.background == ColorBackground(value="#000")
        assert user.created_at == user.updated_at

    async def test_password_is_hashed(self, db):
        user = await UserService.create_user(UserCreate(login="stylesam", password="secret123", name="Sam"))
        conn = get_connection()
        try:
            stored = conn.execute("SELECT password FROM users WHERE id = ?", (user.id,)).fetchone()["password"]
        finally:
            conn.close()
        assert stored != "secret123"
        assert await UserService.authenticate("stylesam", "secret123") == user
        assert await UserService.authenticate("stylesam", "wrong") is None

    async def test_invalid_payload_reports_all_violations(self, db):
        with pytest.raises(BadRequestError) as exc_info:
            await UserService.create_user(UserCreate(login="x", password="1", name=""))
        assert {v.field for v in exc_info.value.violations} == {"login", "password", "name"}

    async def test_duplicate_login_rejected(self, make_user):
        await make_user("stylesam")
        with pytest.raises(BadRequestError, match="Login is already taken"):
            await make_user("STYLESAM")

    async def test_duplicate_phone_rejected(self, make_user):
        await make_user("alice", phone="+79990000001")
        with pytest.raises(BadRequestError, match="Phone"):
            await make_user("bob", phone="+79990000001")

    async def test_audit_record_written(self, make_user):
        user = await make_user("alice")
        logs = await AuditService.list_logs(object_type="user", action="create")
        assert [log["object_id"] for log in logs] == [user.id]


class TestRead:

    async def test_get_missing_user(self, db):
        with pytest.raises(NotFoundError):
            await UserService.get_user_by_id(404)

    async def test_list_includes_friends(self, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await FriendService.add_friend(alice.id, bob.id)
        users = {user.login: user for user in await UserService.list_users()}
        assert users["alice"].friends == [bob.id]
        assert users["bob"].friends == []

    async def test_get_by_login(self, make_user):
        alice = await make_user("alice")
        assert (await UserService.get_user_by_login(" ALICE ")).id == alice.id
        assert await UserService.get_user_by_login("nobody") is None


class TestUpdateSelf:

    async def test_self_edit_succeeds(self, make_user, requester):
        u1 = await make_user("user1")
        updated = await UserService.update_user_by_id(u1.id, UserUpdate(name="X"), requester(u1))
        assert updated.name == "X"
        assert updated.updated_at >= u1.updated_at

    async def test_empty_self_patch_refreshes_timestamp(self, make_user, requester, monkeypatch):
        u1 = await make_user("user1")
        monkeypatch.setattr(user_service, "utcnow_iso", lambda: "2030-01-01T00:00:00+00:00")
        updated = await UserService.update_user_by_id(u1.id, UserUpdate(), requester(u1))
        assert updated.updated_at == "2030-01-01T00:00:00+00:00"
        assert updated.model_dump(exclude={"updated_at"}) == u1.model_dump(exclude={"updated_at"})

    async def test_self_role_change_forbidden(self, make_user, requester):
        u1 = await make_user("user1")
        with pytest.raises(ForbiddenError, match="own role"):
            await UserService.update_user_by_id(u1.id, UserUpdate(role_id=2), requester(u1))
        assert (await UserService.get_user_by_id(u1.id)).role_id == USER

    @pytest.mark.parametrize("role_id", [SUPER_ADMIN, ADMIN])
    async def test_elevated_self_role_change_forbidden(self, make_user, requester, role_id):
        admin = await make_user("boss", role_id=role_id)
        with pytest.raises(ForbiddenError):
            await UserService.update_user_by_id(admin.id, UserUpdate(role_id=USER), requester(admin))

    async def test_self_role_change_mixed_with_other_fields_forbidden(self, make_user, requester):
        u1 = await make_user("user1")
        with pytest.raises(ForbiddenError):
            await UserService.update_user_by_id(u1.id, UserUpdate(name="X", role_id=1), requester(u1))
        assert (await UserService.get_user_by_id(u1.id)).name == "User1"

    async def test_socials_replaced_wholesale(self, make_user, requester):
        u1 = await make_user("user1", socials=[{"name": "VK", "url": "https://vk.com/user1"}])
        patch = UserUpdate(socials=[{"name": "GitHub", "url": "https://github.com/user1"}])
        updated = await UserService.update_user_by_id(u1.id, patch, requester(u1))
        assert [social.name for social in updated.socials] == ["GitHub"]

    async def test_password_change_is_hashed(self, make_user, requester):
        u1 = await make_user("user1")
        await UserService.update_user_by_id(u1.id, UserUpdate(password="another123"), requester(u1))
        assert await UserService.authenticate("user1", "another123") is not None
        assert await UserService.authenticate("user1", "secret123") is None

    async def test_invalid_self_edit_rejected(self, make_user, requester):
        u1 = await make_user("user1")
        with pytest.raises(BadRequestError):
            await UserService.update_user_by_id(u1.id, UserUpdate(email="nope"), requester(u1))

    async def test_login_collision_rejected(self, make_user, requester):
        await make_user("alice")
        bob = await make_user("bob")
        with pytest.raises(BadRequestError, match="Login is already taken"):
            await UserService.update_user_by_id(bob.id, UserUpdate(login="alice"), requester(bob))


class TestUpdateOther:

    async def test_admin_changes_role(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        u2 = await make_user("user2")
        updated = await UserService.update_user_by_id(u2.id, UserUpdate(role_id=ADMIN), requester(admin))
        assert updated.role_id == ADMIN

    async def test_regular_user_role_change_forbidden(self, make_user, requester):
        u1 = await make_user("user1")
        u2 = await make_user("user2")
        with pytest.raises(ForbiddenError, match="not allowed to update role"):
            await UserService.update_user_by_id(u2.id, UserUpdate(role_id=ADMIN), requester(u1))

    @pytest.mark.parametrize("role_id", [SUPER_ADMIN, ADMIN, USER])
    async def test_non_role_patch_on_other_is_bad_request(self, make_user, requester, role_id):
        caller = await make_user("caller", role_id=role_id)
        u2 = await make_user("user2")
        with pytest.raises(BadRequestError, match="anything other than the role"):
            await UserService.update_user_by_id(u2.id, UserUpdate(name="X"), requester(caller))
        with pytest.raises(BadRequestError):
            await UserService.update_user_by_id(u2.id, UserUpdate(name="X", role_id=1), requester(caller))

    async def test_empty_patch_on_other_is_bad_request(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        u2 = await make_user("user2")
        with pytest.raises(BadRequestError):
            await UserService.update_user_by_id(u2.id, UserUpdate(), requester(admin))

    async def test_unknown_role_rejected(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        u2 = await make_user("user2")
        with pytest.raises(BadRequestError, match="does not exist"):
            await UserService.update_user_by_id(u2.id, UserUpdate(role_id=99), requester(admin))

    async def test_missing_target(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        with pytest.raises(NotFoundError):
            await UserService.update_user_by_id(404, UserUpdate(role_id=USER), requester(admin))


class TestDelete:

    async def test_self_delete(self, make_user, requester):
        u1 = await make_user("user1")
        assert await UserService.delete_user_by_id(u1.id, requester(u1)) is True
        with pytest.raises(NotFoundError):
            await UserService.get_user_by_id(u1.id)

    async def test_delete_other_forbidden(self, make_user, requester):
        u1 = await make_user("user1")
        u2 = await make_user("user2")
        with pytest.raises(ForbiddenError):
            await UserService.delete_user_by_id(u2.id, requester(u1))

    async def test_admin_delete_cascades(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        u1 = await make_user("user1")
        u2 = await make_user("user2")
        await FriendService.add_friend(u1.id, u2.id)
        await FriendService.add_friend(u2.id, u1.id)
        await ZoneService.create_zone(u2.id, ZoneCreate(name="Home", geometry={"type": "Point"}))

        assert await UserService.delete_user_by_id(u2.id, requester(admin)) is True

        assert (await UserService.get_user_by_id(u1.id)).friends == []
        conn = get_connection()
        try:
            zones = conn.execute("SELECT COUNT(*) AS n FROM geo_zones WHERE user_id = ?", (u2.id,)).fetchone()
            links = conn.execute("SELECT COUNT(*) AS n FROM user_friends").fetchone()
        finally:
            conn.close()
        assert zones["n"] == 0
        assert links["n"] == 0

    async def test_delete_missing_user(self, make_user, requester):
        admin = await make_user("admin", role_id=ADMIN)
        with pytest.raises(NotFoundError):
            await UserService.delete_user_by_id(404, requester(admin))

    async def test_vanished_user_returns_false(self, make_user, requester, monkeypatch):
        u1 = await make_user("user1")
        original = UserService.get_user_by_id.__func__

        async def fetch_then_vanish(cls, user_id):
            user = await original(cls, user_id)
            conn = get_connection()
            try:
                conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
                conn.commit()
            finally:
                conn.close()
            return user

        monkeypatch.setattr(UserService, "get_user_by_id", classmethod(fetch_then_vanish))
        assert await UserService.delete_user_by_id(u1.id, requester(u1)) is False
