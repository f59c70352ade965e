"""
Geo zone endpoints for API v1.

Zones live under ``/users/{user_id}/zones``.  The ``user_id`` in the
path is supplied by the client, so every route first checks that it
names the authenticated caller.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from user_directory_api.app.api.v1.errors import http_error
from user_directory_api.app.core.errors import DirectoryError
from user_directory_api.app.core.security import Requester, get_current_user
from user_directory_api.app.schemas.zone import ZoneCreate, ZoneRead
from user_directory_api.app.services.zone_service import ZoneService


router = APIRouter()


@router.post("/{user_id}/zones", response_model=ZoneRead, status_code=status.HTTP_201_CREATED)
async def create_zone(
    user_id: int,
    zone: ZoneCreate,
    current_user: Requester = Depends(get_current_user),
) -> ZoneRead:
    try:
        ZoneService.ensure_owner(user_id, current_user)
        return await ZoneService.create_zone(user_id, zone)
    except DirectoryError as e:
        raise http_error(e)


@router.get("/{user_id}/zones", response_model=List[ZoneRead])
async def list_zones(user_id: int, current_user: Requester = Depends(get_current_user)) -> List[ZoneRead]:
    try:
        ZoneService.ensure_owner(user_id, current_user)
        return await ZoneService.list_zones(user_id)
    except DirectoryError as e:
        raise http_error(e)


@router.get("/{user_id}/zones/{zone_id}", response_model=ZoneRead)
async def get_zone(
    user_id: int,
    zone_id: int,
    current_user: Requester = Depends(get_current_user),
) -> ZoneRead:
    try:
        ZoneService.ensure_owner(user_id, current_user)
        return await ZoneService.get_zone_by_id(user_id, zone_id)
    except DirectoryError as e:
        raise http_error(e)


@router.patch("/{user_id}/zones/{zone_id}", response_model=ZoneRead)
async def update_zone(
    user_id: int,
    zone_id: int,
    zone: ZoneCreate,
    current_user: Requester = Depends(get_current_user),
) -> ZoneRead:
    """Overwrite a zone.

    The body must contain the complete zone; fields left out are not
    kept from the stored version.
    """
    try:
        ZoneService.ensure_owner(user_id, current_user)
        return await ZoneService.update_zone_by_id(user_id, zone_id, zone)
    except DirectoryError as e:
        raise http_error(e)


@router.delete("/{user_id}/zones/{zone_id}")
async def delete_zone(
    user_id: int,
    zone_id: int,
    current_user: Requester = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        ZoneService.ensure_owner(user_id, current_user)
        deleted = await ZoneService.delete_zone_by_id(user_id, zone_id)
    except DirectoryError as e:
        raise http_error(e)
    return {"success": deleted}
