"""
Top‑level router for version 1 of the API.

Aggregates the resource routers under a unified prefix.  Zones are
mounted under ``/users`` because they are sub‑resources of a user.
"""

from fastapi import APIRouter

from .endpoints import audit, roles, users, zones

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(zones.router, prefix="/users", tags=["zones"])
router.include_router(roles.router, prefix="/roles", tags=["roles"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
