"""
Friend lists.

Friendship is one‑directional: ``add_friend(a, b)`` puts ``b`` on
``a``'s list and leaves ``b``'s list alone, and ``remove_friend``
mirrors that.  The ``user_friends`` table keys rows by
``(user_id, friend_id)`` and forbids ``user_id = friend_id``, so a list
can never hold its owner or the same friend twice, whatever sequence
of calls is made.  Any change to a list refreshes the owner's
``updated_at``.
"""

import logging
import sqlite3
from typing import List, Optional

from ..core.db import get_connection, utcnow_iso
from ..core.errors import BadRequestError, ConflictError, NotFoundError
from ..schemas.user import UserRead
from .audit_service import AuditService
from .user_service import USER_FIELDS, fetch_friend_ids, row_to_user


logger = logging.getLogger(__name__)


def _user_exists(conn: sqlite3.Connection, user_id: int) -> bool:
    return conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is not None


def _require_user(conn: sqlite3.Connection, user_id: int) -> None:
    if not _user_exists(conn, user_id):
        raise NotFoundError(f"User {user_id} not found")


def _friends_of(conn: sqlite3.Connection, user_id: int) -> List[UserRead]:
    # The join drops references to users that no longer exist.
    rows = conn.execute(
        f"""
        SELECT {', '.join('u.' + column for column in USER_FIELDS)}
        FROM user_friends f JOIN users u ON u.id = f.friend_id
        WHERE f.user_id = ?
        ORDER BY f.created_at, f.friend_id
        """,
        (user_id,),
    ).fetchall()
    return [row_to_user(row, fetch_friend_ids(conn, row["id"])) for row in rows]


class FriendService:
    """Maintains the ``user_friends`` relation."""

    @classmethod
    async def list_friends(cls, user_id: int) -> List[UserRead]:
        """Return the full records of ``user_id``'s friends."""
        conn = get_connection()
        try:
            _require_user(conn, user_id)
            return _friends_of(conn, user_id)
        finally:
            conn.close()

    @classmethod
    async def add_friend(cls, user_id: int, candidate_id: int, actor_id: Optional[int] = None) -> List[UserRead]:
        """Add ``candidate_id`` to ``user_id``'s friends and return the updated list.

        Adding an existing friend is a no‑op.  Raises ``ConflictError``
        for ``user_id == candidate_id`` and ``NotFoundError`` if either
        user is missing.
        """
        if user_id == candidate_id:
            raise ConflictError("You can not add yourself to friends")
        conn = get_connection()
        try:
            _require_user(conn, user_id)
            _require_user(conn, candidate_id)
            now = utcnow_iso()
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO user_friends (user_id, friend_id, created_at) VALUES (?, ?, ?)",
                (user_id, candidate_id, now),
            )
            added = cursor.rowcount > 0
            if added:
                cursor.execute("UPDATE users SET updated_at = ? WHERE id = ?", (now, user_id))
            conn.commit()
            friends = _friends_of(conn, user_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if added:
            logger.info("User %s added %s to friends", user_id, candidate_id)
            await AuditService.record(
                user_id=actor_id,
                action="create",
                object_type="friendship",
                object_id=user_id,
                details={"friend_id": candidate_id},
            )
        return friends

    @classmethod
    async def remove_friend(cls, user_id: int, candidate_id: int, actor_id: Optional[int] = None) -> bool:
        """Remove ``candidate_id`` from ``user_id``'s friends.

        Raises ``BadRequestError`` when the ids match or when the two
        users were not friends, ``NotFoundError`` if ``user_id`` does
        not exist.  Returns ``True`` on success.
        """
        if user_id == candidate_id:
            raise BadRequestError("Ids can not match")
        conn = get_connection()
        try:
            _require_user(conn, user_id)
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM user_friends WHERE user_id = ? AND friend_id = ?",
                (user_id, candidate_id),
            )
            if cursor.rowcount == 0:
                raise BadRequestError(f"No such friendship: user {candidate_id} is not a friend of user {user_id}")
            cursor.execute("UPDATE users SET updated_at = ? WHERE id = ?", (utcnow_iso(), user_id))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info("User %s removed %s from friends", user_id, candidate_id)
        await AuditService.record(
            user_id=actor_id,
            action="delete",
            object_type="friendship",
            object_id=user_id,
            details={"friend_id": candidate_id},
        )
        return True
