"""Join, role and team requests awaiting admin review."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class TeamRequest(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "team_requests"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    kind: str = Field(nullable=False)  # join | role | team
    team_id: Optional[uuid.UUID] = Field(default=None, foreign_key="teams.id", index=True)
    team_name: Optional[str] = Field(default=None, index=True)
    requested_roles: list[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    ancillary: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    description: Optional[str] = None
    status: str = Field(default="pending", nullable=False, index=True)  # pending | approved | rejected
    reviewed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    review_notes: Optional[str] = None
