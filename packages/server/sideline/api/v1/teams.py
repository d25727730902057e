"""
Team endpoints.

GET    /api/v1/teams                       — List teams
POST   /api/v1/teams                       — Create a team (Admin)
GET    /api/v1/teams/{teamId}              — Get a team (member)
GET    /api/v1/teams/{teamId}/roles        — Caller's held, pending and requestable roles
GET    /api/v1/teams/{teamId}/members      — Active roster (coach or manager)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sideline.core.database import get_session
from sideline.core.guard import (
    AccessGrant,
    require_admin,
    require_signed_in,
    require_team_member,
    require_team_staff,
)
from sideline.services import memberships as membership_service
from sideline.services import teams as team_service
from sideline_shared.schemas.teams import (
    MemberListResponse,
    MemberResponse,
    TeamCreateRequest,
    TeamListResponse,
    TeamResponse,
    TeamRolesResponse,
)

router = APIRouter()


@router.get("", response_model=TeamListResponse)
async def list_teams(
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    teams = await team_service.list_teams(session)
    return TeamListResponse(data=[TeamResponse.model_validate(t) for t in teams])


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    body: TeamCreateRequest,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create a team directly (Admin only)."""
    team = await team_service.create_team(body.name, body.description, session)
    return TeamResponse.model_validate(team)


@router.get("/{teamId}", response_model=TeamResponse)
async def get_team(
    teamId: uuid.UUID,
    auth: AccessGrant = Depends(require_team_member),
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.get_team(teamId, session)
    return TeamResponse.model_validate(team)


@router.get("/{teamId}/roles", response_model=TeamRolesResponse)
async def get_team_roles(
    teamId: uuid.UUID,
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    """What the caller holds, has pending and may still request in a team."""
    await team_service.get_team(teamId, session)
    view = await membership_service.team_roles_view(teamId, auth.user_id, session)
    return TeamRolesResponse(**view)


@router.get("/{teamId}/members", response_model=MemberListResponse)
async def list_members(
    teamId: uuid.UUID,
    auth: AccessGrant = Depends(require_team_staff),
    session: AsyncSession = Depends(get_session),
):
    items = await membership_service.list_team_members(teamId, session)
    return MemberListResponse(data=[MemberResponse(**item) for item in items])
