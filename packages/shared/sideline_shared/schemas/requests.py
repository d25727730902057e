"""
Join, role and team request schemas shared between server and clients.

Covers: request submission bodies, admin review, request responses.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import RequestKind, RequestStatus, ReviewDecision, Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class JoinRequestCreate(BaseModel):
    """Ask to join an existing team with a set of roles."""
    team_id: uuid.UUID
    requested_roles: list[Role] = Field(..., min_length=1)


class RoleRequestCreate(BaseModel):
    """Ask for extra roles in a team, or in a team that does not exist yet."""
    team_id: Optional[uuid.UUID] = None
    team_name: Optional[str] = Field(None, min_length=1, max_length=100)
    requested_roles: list[Role] = Field(..., min_length=1)
    player_name: Optional[str] = Field(
        None,
        max_length=200,
        description="Name of the linked player, required for the parent role",
    )


class TeamRequestCreate(BaseModel):
    """Ask an admin to create a new team."""
    team_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    requested_roles: list[Role] = Field(default=[Role.COACH], min_length=1)
    player_name: Optional[str] = Field(None, max_length=200)


class ReviewRequestBody(BaseModel):
    decision: ReviewDecision
    notes: Optional[str] = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class RequestResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    kind: RequestKind
    team_id: Optional[uuid.UUID] = None
    team_name: Optional[str] = None
    requested_roles: list[Role]
    ancillary: dict[str, str] = Field(default_factory=dict)
    description: Optional[str] = None
    status: RequestStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class RequestListResponse(BaseModel):
    data: list[RequestResponse]


class ReviewResponse(BaseModel):
    request: RequestResponse
    team_id: Optional[uuid.UUID] = None
    # every request that moved to approved, the reviewed one included
    approved_request_ids: list[uuid.UUID] = Field(default_factory=list)
