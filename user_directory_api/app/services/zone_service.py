"""
Business logic for geo zones.

Zones are sub‑resources of a user, addressed by ``(user_id, zone_id)``.
A zone id is allocated by SQLite ``AUTOINCREMENT`` and therefore never
collides with, nor reuses, the id of any other zone, including zones
that were deleted.  A zone looked up under the wrong owner is reported
as missing.

Updates overwrite the whole zone: the payload must be complete and
optional fields that are left out (``metadata``) are cleared.
"""

import logging
import sqlite3
from typing import List

from ..core.db import dump_json, get_connection, load_json, utcnow_iso
from ..core.errors import ForbiddenError, NotFoundError
from ..core.security import Requester
from ..schemas.zone import ZoneCreate, ZoneRead
from .audit_service import AuditService
from .validation import raise_for_violations, validate_zone


logger = logging.getLogger(__name__)

ZONE_COLUMNS = "id, user_id, name, geometry, metadata, created_at, updated_at"


def _row_to_zone(row: sqlite3.Row) -> ZoneRead:
    return ZoneRead(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        geometry=load_json(row["geometry"], {}),
        metadata=load_json(row["metadata"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _fetch_zone(conn: sqlite3.Connection, user_id: int, zone_id: int) -> ZoneRead:
    row = conn.execute(
        f"SELECT {ZONE_COLUMNS} FROM geo_zones WHERE id = ? AND user_id = ?",
        (zone_id, user_id),
    ).fetchone()
    if not row:
        raise NotFoundError(f"Zone {zone_id} not found for user {user_id}")
    return _row_to_zone(row)


def _require_user(conn: sqlite3.Connection, user_id: int) -> None:
    if conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
        raise NotFoundError(f"User {user_id} not found")


class ZoneService:
    """Service for the ``geo_zones`` table."""

    @staticmethod
    def ensure_owner(user_id: int, requester: Requester) -> None:
        """Zones may only be managed by their owner."""
        if requester.user_id != user_id:
            logger.warning("User %s denied access to zones of user %s", requester.user_id, user_id)
            raise ForbiddenError("You can only manage your own zones")

    @classmethod
    async def create_zone(cls, user_id: int, data: ZoneCreate) -> ZoneRead:
        raise_for_violations(validate_zone(data), "Invalid zone data")
        now = utcnow_iso()
        conn = get_connection()
        try:
            _require_user(conn, user_id)
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO geo_zones (user_id, name, geometry, metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, data.name.strip(), dump_json(data.geometry), dump_json(data.metadata), now, now),
            )
            zone_id = cursor.lastrowid
            conn.commit()
            zone = _fetch_zone(conn, user_id, zone_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("User %s created zone %s", user_id, zone_id)
        await AuditService.record(
            user_id=user_id, action="create", object_type="zone", object_id=zone_id, details={"name": zone.name}
        )
        return zone

    @classmethod
    async def list_zones(cls, user_id: int) -> List[ZoneRead]:
        conn = get_connection()
        try:
            _require_user(conn, user_id)
            rows = conn.execute(
                f"SELECT {ZONE_COLUMNS} FROM geo_zones WHERE user_id = ? ORDER BY id", (user_id,)
            ).fetchall()
            return [_row_to_zone(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_zone_by_id(cls, user_id: int, zone_id: int) -> ZoneRead:
        conn = get_connection()
        try:
            return _fetch_zone(conn, user_id, zone_id)
        finally:
            conn.close()

    @classmethod
    async def update_zone_by_id(cls, user_id: int, zone_id: int, data: ZoneCreate) -> ZoneRead:
        """Replace every field of the zone with ``data``."""
        raise_for_violations(validate_zone(data), "Invalid zone data")
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE geo_zones SET name = ?, geometry = ?, metadata = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (
                    data.name.strip(),
                    dump_json(data.geometry),
                    dump_json(data.metadata),
                    utcnow_iso(),
                    zone_id,
                    user_id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"Zone {zone_id} not found for user {user_id}")
            conn.commit()
            zone = _fetch_zone(conn, user_id, zone_id)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("User %s updated zone %s", user_id, zone_id)
        await AuditService.record(user_id=user_id, action="update", object_type="zone", object_id=zone_id)
        return zone

    @classmethod
    async def delete_zone_by_id(cls, user_id: int, zone_id: int) -> bool:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM geo_zones WHERE id = ? AND user_id = ?", (zone_id, user_id))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Zone {zone_id} not found for user {user_id}")
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        logger.info("User %s deleted zone %s", user_id, zone_id)
        await AuditService.record(user_id=user_id, action="delete", object_type="zone", object_id=zone_id)
        return True
