"""
Caller endpoints.

GET    /api/v1/me              — Profile, roles per team and landing path
GET    /api/v1/me/navigation   — Navigation tree for the selected team (?team_id=)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sideline.core.database import get_session
from sideline.core.guard import AccessGrant, require_signed_in
from sideline.services import users as user_service
from sideline.services.navigation import visible_navigation
from sideline_shared.schemas.users import NavigationResponse, ProfileResponse

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def get_me(
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    info = await user_service.get_profile(auth.identity.user, session)
    return ProfileResponse(**info)


@router.get("/navigation", response_model=NavigationResponse)
async def get_navigation(
    auth: AccessGrant = Depends(require_signed_in),
):
    """Navigation pruned to what the caller may see in the selected team."""
    return NavigationResponse(
        selected_team_id=auth.team_id,
        items=visible_navigation(auth.profile, auth.context),
    )
