"""
Endpoint subpackage for API v1.

Each module in this package defines an APIRouter for one resource
(users with their friend lists, zones, roles, audit logs).  The
routers are aggregated in ``router.py`` at the package level.
"""
