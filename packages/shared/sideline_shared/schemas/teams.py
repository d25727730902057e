"""Team and membership schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import Role


class TeamCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Team display name")
    description: Optional[str] = Field(None, max_length=1000)


class TeamResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class TeamListResponse(BaseModel):
    data: list[TeamResponse]


class MemberAddRequest(BaseModel):
    """Admin adds a user to a team directly, without a request."""
    user_id: uuid.UUID
    roles: list[Role] = Field(..., min_length=1)
    player_name: Optional[str] = Field(None, max_length=200)


class MemberResponse(BaseModel):
    user_id: uuid.UUID
    team_id: uuid.UUID
    email: Optional[str] = None
    display_name: Optional[str] = None
    roles: list[Role]
    is_active: bool


class MemberListResponse(BaseModel):
    data: list[MemberResponse]


class TeamRolesResponse(BaseModel):
    """A user's standing in one team, as shown on the role request form."""
    user_roles: list[Role]
    pending_roles: list[Role]
    available_roles: list[Role]
