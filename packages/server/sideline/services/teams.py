"""
Team service — team lookup and creation.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sideline.core.errors import NotFoundError, ValidationError
from sideline.models.team import Team

log = structlog.get_logger()


async def list_teams(session: AsyncSession) -> list[Team]:
    result = await session.execute(select(Team).order_by(Team.name))
    return list(result.scalars().all())


async def get_team(team_id: uuid.UUID, session: AsyncSession) -> Team:
    """Get a team by id; raises NotFoundError if absent."""
    result = await session.execute(select(Team).where(Team.id == team_id))
    team = result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    return team


async def create_team(
    name: str, description: Optional[str], session: AsyncSession
) -> Team:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Team name is required")

    team = Team(name=name, description=description)
    session.add(team)
    await session.flush()

    log.info("team.created", team_id=str(team.id), name=name)
    return team
