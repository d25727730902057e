"""
Route guards.

A guard pairs a declared ``NavRequirement`` with the evaluator. Routes depend
on ``require_access(requirement)``; on a hidden decision the dependency
raises ``AuthorizationError`` (403) and the handler never runs.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sideline.core.auth import Identity, get_identity
from sideline.core.database import get_session
from sideline.core.errors import AuthorizationError, ValidationError
from sideline.services import memberships as membership_service
from sideline_shared.schemas.access import (
    AccessContext,
    NavRequirement,
    RoleProfile,
    Visibility,
    evaluate,
)
from sideline_shared.schemas.common import Role

log = structlog.get_logger()

TEAM_HEADER = "X-Team-Id"


class AccessGrant:
    """What a guarded handler receives: who the caller is and what they hold."""

    def __init__(self, identity: Identity, profile: RoleProfile, context: AccessContext):
        self.identity = identity
        self.profile = profile
        self.context = context
        self.user_id = identity.user_id
        self.is_admin = profile.is_admin
        self.team_id = context.selected_team_id


class Guard:
    """Apply one requirement to a profile, independent of any web framework."""

    def __init__(self, requirement: NavRequirement, description: str = "this resource"):
        self.requirement = requirement
        self.description = description

    def allows(self, profile: RoleProfile, context: Optional[AccessContext] = None) -> bool:
        return evaluate(self.requirement, profile, context) is Visibility.VISIBLE

    def check(self, profile: RoleProfile, context: Optional[AccessContext] = None) -> None:
        if not self.allows(profile, context):
            log.info(
                "access.denied",
                user_id=str(profile.user_id),
                resource=self.description,
                team_id=str(context.selected_team_id) if context and context.selected_team_id else None,
            )
            raise AuthorizationError(f"You do not have access to {self.description}")


def selected_team_id(request: Request) -> Optional[uuid.UUID]:
    """Team context from the path, the query string or the team header."""
    raw = (
        request.path_params.get("teamId")
        or request.query_params.get("team_id")
        or request.headers.get(TEAM_HEADER)
    )
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise ValidationError(f"Invalid team id '{raw}'")


def require_access(requirement: NavRequirement, description: str = "this resource"):
    """Build a FastAPI dependency that enforces ``requirement``."""
    guard = Guard(requirement, description)

    async def dependency(
        request: Request,
        identity: Identity = Depends(get_identity),
        session: AsyncSession = Depends(get_session),
    ) -> AccessGrant:
        profile = await membership_service.build_role_profile(identity.user, session)
        context = AccessContext(selected_team_id=selected_team_id(request))
        guard.check(profile, context)
        return AccessGrant(identity, profile, context)

    return dependency


# ---------------------------------------------------------------------------
# Common requirements
# ---------------------------------------------------------------------------

SIGNED_IN = NavRequirement(is_global=True)
ADMIN_ONLY = NavRequirement(admin_only=True, is_global=True)
TEAM_MEMBER = NavRequirement(team_required=True)
TEAM_STAFF = NavRequirement(team_required=True, required_roles={Role.COACH, Role.MANAGER})

require_signed_in = require_access(SIGNED_IN, "your profile")
require_admin = require_access(ADMIN_ONLY, "admin tools")
require_team_member = require_access(TEAM_MEMBER, "this team")
require_team_staff = require_access(TEAM_STAFF, "the team roster")
