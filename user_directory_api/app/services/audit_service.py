"""
Audit trail for directory mutations.

Every successful create, update and delete of a user, a friendship or
a zone is recorded in the ``audit_logs`` table together with the
acting user.  ``record`` is what services call: it writes after the
business transaction has been committed and only logs a warning if
the audit write itself fails, so an unavailable audit table never
turns a completed mutation into an error.  Reading the trail is
restricted to elevated roles at the endpoint level.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from ..core.db import dump_json, get_connection, load_json


logger = logging.getLogger(__name__)

AUDIT_COLUMNS = ("id", "user_id", "action", "object_type", "object_id", "timestamp", "details")


def _row_to_entry(row: sqlite3.Row) -> Dict[str, Any]:
    entry = {column: row[column] for column in AUDIT_COLUMNS}
    entry["details"] = load_json(row["details"])
    return entry


class AuditService:
    """Writes and reads the audit trail."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert a new audit record.

        Parameters
        ----------
        user_id : Optional[int]
            The acting user; ``None`` for anonymous actions such as
            registration.
        action : str
            ``"create"``, ``"update"`` or ``"delete"``.
        object_type : str
            ``"user"``, ``"friendship"`` or ``"zone"``.
        object_id : Optional[int]
            Primary key of the affected object (the list owner for
            friendships).
        details : Optional[dict]
            Extra data stored as JSON.  Never include secrets.
        """
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO audit_logs (user_id, action, object_type, object_id, details) VALUES (?, ?, ?, ?, ?)",
                (user_id, action, object_type, object_id, dump_json(details) if details else None),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def record(cls, *args: Any, **kwargs: Any) -> None:
        """Like ``log`` but a storage failure is logged instead of raised."""
        try:
            await cls.log(*args, **kwargs)
        except sqlite3.Error as e:
            logger.warning("Failed to write audit record %s %s: %s", args, kwargs, e)

    @classmethod
    async def list_logs(
        cls,
        user_id: Optional[int] = None,
        object_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return audit records, newest first.  ``None`` filters match everything."""
        filters = {"user_id": user_id, "object_type": object_type, "action": action}
        active = {column: value for column, value in filters.items() if value is not None}
        query = f"SELECT {', '.join(AUDIT_COLUMNS)} FROM audit_logs"
        if active:
            query += " WHERE " + " AND ".join(f"{column} = ?" for column in active)
        query += " ORDER BY id DESC LIMIT ? OFFSET ?"

        conn = get_connection()
        try:
            rows = conn.execute(query, (*active.values(), limit, offset)).fetchall()
        finally:
            conn.close()
        return [_row_to_entry(row) for row in rows]
