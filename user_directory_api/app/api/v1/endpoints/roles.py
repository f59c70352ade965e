"""
Role endpoints for API v1.

Roles are read‑only through the API: they are seeded by migrations and
assigned to users through ``PATCH /users/{id}`` with a ``role_id``.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from user_directory_api.app.core.security import Requester, get_current_user
from user_directory_api.app.services.role_service import RoleService


router = APIRouter()


@router.get("/", response_model=List[Dict[str, Any]])
async def list_roles(current_user: Requester = Depends(get_current_user)) -> List[Dict[str, Any]]:
    """List roles, flagging the elevated ones."""
    return await RoleService.list_roles()
