"""
API v1 Router

Team-scoped endpoints take the team from the {teamId} path parameter; other
guarded endpoints read it from ?team_id= or the X-Team-Id header.
"""

from fastapi import APIRouter
from . import admin, requests, teams, users

router = APIRouter()

router.include_router(users.router, prefix="/me", tags=["Me"])
router.include_router(teams.router, prefix="/teams", tags=["Teams"])
router.include_router(requests.router, prefix="/requests", tags=["Requests"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/me",
            "/me/navigation",
            "/teams",
            "/teams/{teamId}/roles",
            "/teams/{teamId}/members",
            "/requests",
            "/admin/teams/{teamId}/members",
            "/admin/users/{userId}/admin",
        ],
    }
