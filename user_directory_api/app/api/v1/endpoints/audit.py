"""
Audit log endpoints for API v1.

Elevated callers can page through the trail of user, friendship and
zone mutations and narrow it down by who acted, on what and how.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from user_directory_api.app.core.security import Requester, require_elevated
from user_directory_api.app.services.audit_service import AuditService

router = APIRouter()


@router.get("/logs")
async def list_audit_logs(
    user_id: Optional[int] = Query(None, description="Only actions performed by this user"),
    object_type: Optional[str] = Query(None, pattern="^(user|friendship|zone)$"),
    action: Optional[str] = Query(None, pattern="^(create|update|delete)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: Requester = Depends(require_elevated),
) -> List[Dict[str, Any]]:
    """Newest entries first."""
    return await AuditService.list_logs(user_id, object_type, action, limit=limit, offset=offset)
