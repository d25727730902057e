"""
User service — caller profile and the global admin flag.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sideline.core.errors import NotFoundError, ValidationError
from sideline.models.user import User
from sideline.services import memberships as membership_service
from sideline.services.navigation import landing_path
from sideline_shared.schemas.common import sort_roles

log = structlog.get_logger()


async def get_user(user_id: uuid.UUID, session: AsyncSession) -> User:
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_profile(user: User, session: AsyncSession) -> dict:
    """The user, their roles per team and where they should land."""
    rows = await membership_service.list_active_memberships(user.id, session)
    profile = await membership_service.build_role_profile(user, session)
    return {
        "user_id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_admin": bool(user.is_admin),
        "teams": [
            {"team_id": team.id, "name": team.name, "roles": sort_roles(m.roles)}
            for m, team in rows
            if m.roles
        ],
        "landing_path": landing_path(profile),
    }


async def set_admin_flag(
    user_id: uuid.UUID,
    is_admin: bool,
    caller_user_id: uuid.UUID,
    session: AsyncSession,
) -> User:
    """Grant or revoke the global admin flag. Admins cannot demote themselves."""
    if user_id == caller_user_id and not is_admin:
        raise ValidationError("You cannot remove your own admin access")

    user = await get_user(user_id, session)
    user.is_admin = is_admin
    session.add(user)
    await session.flush()

    log.info(
        "user.admin_flag_set",
        user_id=str(user_id),
        is_admin=is_admin,
        by=str(caller_user_id),
    )
    return user
