"""
Business logic for users.

``UserService`` owns the ``users`` table: registration, lookup,
authentication, field‑level updates and deletion.  Updates and
deletes go through ``PermissionService`` before anything is written.

Updating a user is a three‑way decision evaluated strictly in this
order:

1. the caller edits themself and the patch touches ``role_id``:
   rejected, whatever the caller's role;
2. the caller edits themself: the patch is applied;
3. the caller edits somebody else: only a role change is accepted,
   and only if the permission rules allow it.

Deleting a user cascades to the user's zones and to every friendship
row that mentions it (see ``core.db``), so no dangling zone ids or
one‑sided friend entries are left behind.
"""

import logging
import sqlite3
from typing import Dict, List, Optional

from ..core.db import dump_json, get_connection, load_json, utcnow_iso
from ..core.errors import BadRequestError, ForbiddenError, NotFoundError
from ..core.security import Requester, hash_password, verify_password
from ..core.config import settings
from ..schemas.user import UserCreate, UserRead, UserUpdate
from .audit_service import AuditService
from .permission_service import ROLE_FIELD, Action, PermissionService
from .role_service import RoleService
from .validation import raise_for_violations, validate_user_create, validate_user_update


logger = logging.getLogger(__name__)

USER_FIELDS = (
    "id", "login", "name", "last_name", "email", "phone", "socials", "role_id",
    "avatar", "background", "created_at", "updated_at",
)
USER_COLUMNS = ", ".join(USER_FIELDS)

# Columns written as JSON text.
JSON_FIELDS = ("socials", "background")


def row_to_user(row: sqlite3.Row, friends: Optional[List[int]] = None) -> UserRead:
    """Build a ``UserRead`` from a ``users`` row and its friend ids."""
    return UserRead(
        id=row["id"],
        login=row["login"],
        name=row["name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row["phone"],
        socials=load_json(row["socials"], []),
        role_id=row["role_id"],
        avatar=row["avatar"],
        background=load_json(row["background"]),
        friends=friends or [],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def fetch_friend_ids(conn: sqlite3.Connection, user_id: int) -> List[int]:
    rows = conn.execute(
        "SELECT friend_id FROM user_friends WHERE user_id = ? ORDER BY created_at, friend_id",
        (user_id,),
    ).fetchall()
    return [row["friend_id"] for row in rows]


def fetch_user(conn: sqlite3.Connection, user_id: int) -> Optional[UserRead]:
    row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
    if not row:
        return None
    return row_to_user(row, fetch_friend_ids(conn, user_id))


def _integrity_message(error: sqlite3.IntegrityError) -> str:
    text = str(error)
    if "users.login" in text:
        return "Login is already taken"
    if "users.phone" in text:
        return "Phone number is already registered"
    if "FOREIGN KEY" in text:
        return "Referenced role does not exist"
    return "User data violates a storage constraint"


class UserService:
    """Service for user records.

    Every method opens its own connection and commits at most once, so
    each call is all‑or‑nothing.  There is no locking across calls: two
    concurrent updates of the same user race and the last one to
    commit wins.
    """

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Register a new user.

        Registration is open: no permission check is made.  Every
        validation failure is reported at once via
        ``BadRequestError.violations``.  The login is stored lower‑cased,
        the password hashed, and the default role assigned.
        """
        raise_for_violations(validate_user_create(data), "Invalid user data")
        login = data.login.strip().lower()
        logger.info("Registering user %s", login)
        now = utcnow_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (login, password, name, last_name, email, phone, socials,
                                   role_id, avatar, background, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    login,
                    hash_password(data.password),
                    data.name.strip(),
                    data.last_name,
                    data.email or None,
                    data.phone or None,
                    dump_json([social.model_dump() for social in data.socials]),
                    settings.default_role_id,
                    data.avatar,
                    dump_json(data.background.model_dump()) if data.background else None,
                    now,
                    now,
                ),
            )
            user_id = cursor.lastrowid
            conn.commit()
            user = fetch_user(conn, user_id)
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise BadRequestError(_integrity_message(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        await AuditService.record(
            user_id=None, action="create", object_type="user", object_id=user_id, details={"login": login}
        )
        return user

    @classmethod
    async def list_users(cls) -> List[UserRead]:
        """Return all users with their friend lists."""
        conn = get_connection()
        try:
            rows = conn.execute(f"SELECT {USER_COLUMNS} FROM users ORDER BY id").fetchall()
            friends: Dict[int, List[int]] = {}
            for link in conn.execute(
                "SELECT user_id, friend_id FROM user_friends ORDER BY created_at, friend_id"
            ):
                friends.setdefault(link["user_id"], []).append(link["friend_id"])
            return [row_to_user(row, friends.get(row["id"])) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_user_by_id(cls, user_id: int) -> UserRead:
        """Retrieve a user by ID or raise ``NotFoundError``."""
        conn = get_connection()
        try:
            user = fetch_user(conn, user_id)
        finally:
            conn.close()
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @classmethod
    async def get_user_by_login(cls, login: str) -> Optional[UserRead]:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {USER_COLUMNS} FROM users WHERE login = ?", (login.strip().lower(),)
            ).fetchone()
            if not row:
                return None
            return row_to_user(row, fetch_friend_ids(conn, row["id"]))
        finally:
            conn.close()

    @classmethod
    async def authenticate(cls, login: str, password: str) -> Optional[UserRead]:
        """Return the user if ``password`` matches the stored hash, else ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, password FROM users WHERE login = ?", (login.strip().lower(),)
            ).fetchone()
        finally:
            conn.close()
        if not row or not verify_password(password, row["password"]):
            logger.warning("Failed login attempt for %s", login)
            return None
        return await cls.get_user_by_id(row["id"])

    @classmethod
    async def update_user_by_id(cls, user_id: int, patch: UserUpdate, requester: Requester) -> UserRead:
        """Apply ``patch`` to user ``user_id`` on behalf of ``requester``.

        Raises ``ForbiddenError`` for self role changes and for role
        changes the caller is not entitled to, ``BadRequestError`` when a
        caller patches anything but the role of another user or sends
        invalid data, and ``NotFoundError`` if the user does not exist.
        """
        changed = patch.changed_fields()
        is_self = requester.user_id == user_id

        if is_self and ROLE_FIELD in changed:
            logger.warning("User %s attempted to change their own role", requester.user_id)
            raise ForbiddenError("You can not update your own role")

        if not is_self:
            target = await cls.get_user_by_id(user_id)
            if changed != {ROLE_FIELD}:
                raise BadRequestError("You are not allowed to update anything other than the role")
            if not PermissionService.can_perform(Action.UPDATE, requester, target, changed):
                logger.warning(
                    "User %s denied changing role of user %s", requester.user_id, user_id
                )
                raise ForbiddenError("You are not allowed to update role for that user")

        raise_for_violations(validate_user_update(patch), "Invalid user data")
        if ROLE_FIELD in changed and not await RoleService.role_exists(patch.role_id):
            raise BadRequestError(f"Role {patch.role_id} does not exist")
        return await cls._apply_update(user_id, patch, requester)

    @classmethod
    async def _apply_update(cls, user_id: int, patch: UserUpdate, requester: Requester) -> UserRead:
        updates = patch.model_dump(exclude_unset=True, mode="json")
        fields: List[str] = []
        values: list = []
        for key, value in updates.items():
            if key == "password":
                value = hash_password(value)
            elif key == "login":
                value = value.strip().lower()
            elif key in ("email", "phone"):
                value = value or None
            elif key in JSON_FIELDS:
                value = dump_json(value)
            fields.append(f"{key} = ?")
            values.append(value)
        fields.append("updated_at = ?")
        values.append(utcnow_iso())
        values.append(user_id)

        conn = get_connection()
        try:
            cursor = conn.cursor()
            # Column names come from the ``UserUpdate`` schema, never from the client.
            cursor.execute(f"UPDATE users SET {', '.join(fields)} WHERE id = ?", tuple(values))
            if cursor.rowcount == 0:
                raise NotFoundError(f"User {user_id} not found")
            conn.commit()
            user = fetch_user(conn, user_id)
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise BadRequestError(_integrity_message(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        audited = {key: value for key, value in updates.items() if key != "password"}
        if "password" in updates:
            audited["password"] = "***"
        logger.info("User %s updated user %s: %s", requester.user_id, user_id, sorted(updates))
        await AuditService.record(
            user_id=requester.user_id, action="update", object_type="user", object_id=user_id, details=audited
        )
        return user

    @classmethod
    async def delete_user_by_id(cls, user_id: int, requester: Requester) -> bool:
        """Delete a user if the permission rules allow it.

        Returns ``False`` when the record disappeared between the
        lookup and the delete; that case is not an error.
        """
        target = await cls.get_user_by_id(user_id)
        if not PermissionService.can_perform(Action.DELETE, requester, target):
            logger.warning("User %s denied deleting user %s", requester.user_id, user_id)
            raise ForbiddenError("You are not allowed to delete that user")

        conn = get_connection()
        try:
            cursor = conn.cursor()
            # Zones and friendships go with the user (ON DELETE CASCADE).
            cursor.execute("DELETE FROM users WHERE id = ?", (user_id,))
            deleted = cursor.rowcount > 0
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if deleted:
            logger.info("User %s deleted user %s", requester.user_id, user_id)
            await AuditService.record(
                user_id=requester.user_id, action="delete", object_type="user", object_id=user_id
            )
        else:
            logger.info("User %s was already gone when deletion was attempted", user_id)
        return deleted
