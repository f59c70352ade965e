"""
Role catalogue.

Roles are seeded by migrations (``super_admin``, ``admin``, ``user``)
and referenced by ``users.role_id``.  Which roles count as elevated is
configuration (``settings.elevated_role_ids``), not data.
"""

import json
from typing import Any, Dict, List

from ..core.config import settings
from ..core.db import get_connection


class RoleService:
    """Read access to the ``roles`` table."""

    @classmethod
    async def list_roles(cls) -> List[Dict[str, Any]]:
        conn = get_connection()
        try:
            rows = conn.execute("SELECT id, name, permissions FROM roles ORDER BY id").fetchall()
            return [
                {
                    "id": row["id"],
                    "name": row["name"],
                    "permissions": json.loads(row["permissions"]) if row["permissions"] else [],
                    "elevated": row["id"] in settings.elevated_role_ids,
                }
                for row in rows
            ]
        finally:
            conn.close()

    @classmethod
    async def role_exists(cls, role_id: int) -> bool:
        conn = get_connection()
        try:
            row = conn.execute("SELECT id FROM roles WHERE id = ?", (role_id,)).fetchone()
            return row is not None
        finally:
            conn.close()
