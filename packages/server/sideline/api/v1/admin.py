"""
Admin membership endpoints. Every route requires the global admin flag.

GET    /api/v1/admin/teams/{teamId}/members                        — Roster incl. inactive
POST   /api/v1/admin/teams/{teamId}/members                        — Add a member directly
DELETE /api/v1/admin/teams/{teamId}/members/{userId}               — Deactivate membership
DELETE /api/v1/admin/teams/{teamId}/members/{userId}/roles/{role}  — Remove one role
PUT    /api/v1/admin/users/{userId}/admin                          — Set the admin flag
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sideline.core.database import get_session
from sideline.core.guard import AccessGrant, require_admin
from sideline.services import memberships as membership_service
from sideline.services import teams as team_service
from sideline.services import users as user_service
from sideline_shared.schemas.common import Role, sort_roles
from sideline_shared.schemas.teams import (
    MemberAddRequest,
    MemberListResponse,
    MemberResponse,
)
from sideline_shared.schemas.users import AdminFlagResponse, AdminFlagUpdate

router = APIRouter()


async def _member(team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession) -> MemberResponse:
    membership = await membership_service.get_membership(team_id, user_id, session)
    user = await user_service.get_user(user_id, session)
    return MemberResponse(
        user_id=user.id,
        team_id=team_id,
        email=user.email,
        display_name=user.display_name,
        roles=sort_roles(membership.roles),
        is_active=membership.is_active,
    )


@router.get("/teams/{teamId}/members", response_model=MemberListResponse)
async def list_members(
    teamId: uuid.UUID,
    include_inactive: bool = False,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await team_service.get_team(teamId, session)
    items = await membership_service.list_team_members(
        teamId, session, include_inactive=include_inactive
    )
    return MemberListResponse(data=[MemberResponse(**item) for item in items])


@router.post("/teams/{teamId}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    teamId: uuid.UUID,
    body: MemberAddRequest,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await membership_service.add_member(
        teamId,
        body.user_id,
        body.roles,
        session,
        ancillary={"player_name": body.player_name} if body.player_name else None,
    )
    return await _member(teamId, body.user_id, session)


@router.delete("/teams/{teamId}/members/{userId}", response_model=MemberResponse)
async def deactivate_member(
    teamId: uuid.UUID,
    userId: uuid.UUID,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await membership_service.deactivate_membership(teamId, userId, session)
    return await _member(teamId, userId, session)


@router.delete("/teams/{teamId}/members/{userId}/roles/{role}", response_model=MemberResponse)
async def remove_member_role(
    teamId: uuid.UUID,
    userId: uuid.UUID,
    role: Role,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Remove one role; the membership is deactivated when its last role goes."""
    await membership_service.remove_role(teamId, userId, role, session)
    return await _member(teamId, userId, session)


@router.put("/users/{userId}/admin", response_model=AdminFlagResponse)
async def set_admin_flag(
    userId: uuid.UUID,
    body: AdminFlagUpdate,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.set_admin_flag(userId, body.is_admin, auth.user_id, session)
    return AdminFlagResponse(user_id=user.id, is_admin=user.is_admin)
