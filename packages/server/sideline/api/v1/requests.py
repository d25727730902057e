"""
Join, role and team request endpoints.

POST   /api/v1/requests/join                 — Ask to join a team
POST   /api/v1/requests/role                 — Ask for roles in a team (or a team name)
POST   /api/v1/requests/team                 — Ask for a new team
GET    /api/v1/requests/mine                 — Caller's own requests
GET    /api/v1/requests                      — Pending requests (Admin)
GET    /api/v1/requests/{requestId}          — One request (owner or Admin)
POST   /api/v1/requests/{requestId}/review   — Approve or reject (Admin)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sideline.core.database import get_session
from sideline.core.errors import AuthorizationError
from sideline.core.guard import AccessGrant, require_admin, require_signed_in
from sideline.core.notifications import Notifier, get_notifier
from sideline.services import requests as request_service
from sideline_shared.schemas.requests import (
    JoinRequestCreate,
    RequestListResponse,
    RequestResponse,
    ReviewRequestBody,
    ReviewResponse,
    RoleRequestCreate,
    TeamRequestCreate,
)

router = APIRouter()


def _player_name(player_name: Optional[str]) -> dict:
    return {"player_name": player_name} if player_name else {}


@router.post("/join", response_model=RequestResponse, status_code=201)
async def submit_join_request(
    body: JoinRequestCreate,
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    request = await request_service.submit_join_request(
        auth.user_id, body.team_id, body.requested_roles, session
    )
    return RequestResponse.model_validate(request)


@router.post("/role", response_model=RequestResponse, status_code=201)
async def submit_role_request(
    body: RoleRequestCreate,
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    """Request roles in a team. Without ``team_id`` the request targets ``team_name``."""
    request = await request_service.submit_role_request(
        auth.user_id,
        body.team_id,
        body.requested_roles,
        session,
        ancillary=_player_name(body.player_name),
        team_name=body.team_name,
    )
    return RequestResponse.model_validate(request)


@router.post("/team", response_model=RequestResponse, status_code=201)
async def submit_team_request(
    body: TeamRequestCreate,
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    request = await request_service.submit_team_request(
        auth.user_id,
        body.team_name,
        body.requested_roles,
        session,
        description=body.description,
        ancillary=_player_name(body.player_name),
    )
    return RequestResponse.model_validate(request)


@router.get("/mine", response_model=RequestListResponse)
async def list_my_requests(
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    items = await request_service.list_user_requests(auth.user_id, session)
    return RequestListResponse(data=[RequestResponse.model_validate(r) for r in items])


@router.get("", response_model=RequestListResponse)
async def list_pending_requests(
    team_id: Optional[uuid.UUID] = None,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Pending requests, newest first (Admin only)."""
    items = await request_service.list_pending_requests(session, team_id=team_id)
    return RequestListResponse(data=[RequestResponse.model_validate(r) for r in items])


@router.get("/{requestId}", response_model=RequestResponse)
async def get_request(
    requestId: uuid.UUID,
    auth: AccessGrant = Depends(require_signed_in),
    session: AsyncSession = Depends(get_session),
):
    request = await request_service.get_request(requestId, session)
    if request.user_id != auth.user_id and not auth.is_admin:
        raise AuthorizationError("You do not have access to this request")
    return RequestResponse.model_validate(request)


@router.post("/{requestId}/review", response_model=ReviewResponse)
async def review_request(
    requestId: uuid.UUID,
    body: ReviewRequestBody,
    background_tasks: BackgroundTasks,
    auth: AccessGrant = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    """Approve or reject a pending request (Admin only).

    Requesters are notified after the response is sent: every approved
    requester of an approval, or the requester of a rejection with the
    review notes as the reason.
    """
    outcome = await request_service.review_request(
        requestId, auth.user_id, body.decision, session, notes=body.notes
    )
    if not outcome.approved:
        rejected = outcome.request
        background_tasks.add_task(
            notifier.request_rejected,
            rejected.user_id,
            team_name=rejected.team_name,
            roles=list(rejected.requested_roles),
            reason=body.notes,
        )
    for approved in outcome.approved:
        background_tasks.add_task(
            notifier.membership_granted,
            approved.user_id,
            approved.team_id,
            team_name=approved.team_name,
            roles=list(approved.requested_roles),
        )
    return ReviewResponse(
        request=RequestResponse.model_validate(outcome.request),
        team_id=outcome.team_id,
        approved_request_ids=outcome.approved_request_ids,
    )
