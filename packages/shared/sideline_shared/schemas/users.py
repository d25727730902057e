"""Caller profile, navigation and admin flag schemas."""

from __future__ import annotations

from typing import Optional, List

from pydantic import BaseModel, UUID4

from .access import NavNode
from .common import Role


class TeamRolesItem(BaseModel):
    team_id: UUID4
    name: str
    roles: List[Role]


class ProfileResponse(BaseModel):
    """The authenticated caller and their roles in every team."""
    user_id: UUID4
    email: Optional[str] = None
    display_name: Optional[str] = None
    is_admin: bool
    teams: List[TeamRolesItem]
    landing_path: str


class NavigationResponse(BaseModel):
    selected_team_id: Optional[UUID4] = None
    items: List[NavNode]


class AdminFlagUpdate(BaseModel):
    is_admin: bool


class AdminFlagResponse(BaseModel):
    user_id: UUID4
    is_admin: bool
