"""Team membership: one user's role set within one team."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Membership(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "team_members"
    __table_args__ = (
        sa.UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
    )

    # NULL only on a placeholder waiting for a requested team to be created
    team_id: Optional[uuid.UUID] = Field(default=None, foreign_key="teams.id", index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    roles: list[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    pending_team_name: Optional[str] = Field(default=None, index=True)
