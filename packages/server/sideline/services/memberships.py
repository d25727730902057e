"""
Membership service — role sets per (team, user) and the role profile built
from them.

Role sets are stored as sorted lists of role values. Merging is a set union,
so applying the same grant twice leaves the membership unchanged.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sideline.core.errors import ConflictError, NotFoundError, ValidationError
from sideline.models.base import utcnow
from sideline.models.membership import Membership
from sideline.models.request import TeamRequest
from sideline.models.team import Team
from sideline.models.user import User
from sideline_shared.schemas.access import RoleProfile
from sideline_shared.schemas.common import RequestStatus, Role, sort_roles
from sideline_shared.schemas.roles import DEFAULT_CATALOG, RoleCatalog

log = structlog.get_logger()


def to_roles(values: Iterable[str]) -> frozenset[Role]:
    return frozenset(Role(v) for v in values)


def to_column(roles: Iterable[Role]) -> list[str]:
    return [role.value for role in sort_roles(roles)]


def _names(roles: Iterable[Role]) -> str:
    return ", ".join(role.value for role in sort_roles(roles))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def check_conflicts(
    held: frozenset[Role], requested: Iterable[Role], catalog: RoleCatalog = DEFAULT_CATALOG
) -> None:
    """Raise ValidationError if ``requested`` clashes with itself or ``held``."""
    conflicts = catalog.conflicts(held, requested)
    for role in sort_roles(conflicts):
        with_held = conflicts[role] & held
        if with_held:
            raise ValidationError(
                f"Role '{role.value}' is incompatible with your current roles: {_names(with_held)}"
            )
        raise ValidationError(
            f"Role '{role.value}' cannot be held together with {_names(conflicts[role])}"
        )


def validate_roles(
    held: frozenset[Role],
    requested: Iterable,
    ancillary: Optional[Mapping[str, object]] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> list[Role]:
    """Normalise a requested role set and check it against the catalog.

    Returns the requested roles, de-duplicated and in catalog order.
    """
    try:
        roles = sort_roles(requested)
    except ValueError:
        raise ValidationError("Unknown role requested")
    if not roles:
        raise ValidationError("At least one role must be requested")
    unknown = [role for role in roles if role not in catalog]
    if unknown:
        raise ValidationError(f"Role '{unknown[0].value}' is not offered")

    check_conflicts(held, roles, catalog)

    missing = catalog.missing_fields(roles, ancillary)
    for role, fields in missing.items():
        raise ValidationError(f"Role '{role.value}' requires {', '.join(fields)}")
    return roles


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_membership(
    team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Optional[Membership]:
    result = await session.execute(
        select(Membership).where(
            Membership.team_id == team_id, Membership.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def held_roles(
    team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> frozenset[Role]:
    """Roles of the active membership, empty when there is none."""
    membership = await get_membership(team_id, user_id, session)
    if not membership or not membership.is_active:
        return frozenset()
    return to_roles(membership.roles)


async def pending_roles(
    team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> frozenset[Role]:
    result = await session.execute(
        select(TeamRequest.requested_roles).where(
            TeamRequest.team_id == team_id,
            TeamRequest.user_id == user_id,
            TeamRequest.status == RequestStatus.PENDING.value,
        )
    )
    roles: set[Role] = set()
    for values in result.scalars().all():
        roles |= to_roles(values)
    return frozenset(roles)


async def list_active_memberships(
    user_id: uuid.UUID, session: AsyncSession
) -> list[tuple[Membership, Team]]:
    """All active memberships of a user, with their team, across every team."""
    result = await session.execute(
        select(Membership, Team)
        .join(Team, Team.id == Membership.team_id)
        .where(Membership.user_id == user_id, Membership.is_active == True)  # noqa: E712
        .order_by(Team.name)
    )
    return [(membership, team) for membership, team in result.all()]


async def build_role_profile(user: User, session: AsyncSession) -> RoleProfile:
    """Assemble the profile the evaluator reads. Never cached, never stored."""
    rows = await list_active_memberships(user.id, session)
    return RoleProfile(
        user_id=user.id,
        is_admin=bool(user.is_admin),
        team_roles={m.team_id: to_roles(m.roles) for m, _ in rows if m.roles},
    )


async def list_team_members(
    team_id: uuid.UUID, session: AsyncSession, *, include_inactive: bool = False
) -> list[dict]:
    query = (
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.team_id == team_id)
    )
    if not include_inactive:
        query = query.where(Membership.is_active == True)  # noqa: E712
    result = await session.execute(query)
    return [
        {
            "user_id": user.id,
            "team_id": membership.team_id,
            "email": user.email,
            "display_name": user.display_name,
            "roles": sort_roles(membership.roles),
            "is_active": membership.is_active,
        }
        for membership, user in result.all()
    ]


async def team_roles_view(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    session: AsyncSession,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> dict:
    """Held, pending and still-requestable roles of a user in a team."""
    held = await held_roles(team_id, user_id, session)
    pending = await pending_roles(team_id, user_id, session)
    return {
        "user_roles": sort_roles(held),
        "pending_roles": sort_roles(pending),
        "available_roles": catalog.available_roles(held, pending),
    }


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def merge_roles(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    roles: Iterable[Role],
    session: AsyncSession,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> Membership:
    """Union ``roles`` into the membership, creating or reactivating it.

    An inactive membership starts again from an empty role set.
    """
    membership = await get_membership(team_id, user_id, session)
    held = to_roles(membership.roles) if membership and membership.is_active else frozenset()
    requested = frozenset(sort_roles(roles))
    check_conflicts(held, requested, catalog)

    if membership is None:
        membership = Membership(
            team_id=team_id,
            user_id=user_id,
            roles=to_column(requested),
            is_active=True,
        )
    else:
        membership.roles = to_column(held | requested)
        membership.is_active = True
        membership.pending_team_name = None
        membership.updated_at = utcnow()
    session.add(membership)
    await session.flush()

    log.info(
        "membership.roles_merged",
        team_id=str(team_id),
        user_id=str(user_id),
        roles=membership.roles,
    )
    return membership


async def add_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    roles: Iterable[Role],
    session: AsyncSession,
    *,
    ancillary: Optional[Mapping[str, object]] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> Membership:
    """Admin adds a user to a team directly."""
    result = await session.execute(select(Team.id).where(Team.id == team_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Team not found")
    result = await session.execute(select(User.id).where(User.id == user_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("User not found")

    existing = await get_membership(team_id, user_id, session)
    if existing and existing.is_active:
        raise ConflictError("User is already a member of this team")

    requested = validate_roles(frozenset(), roles, ancillary, catalog)
    return await merge_roles(team_id, user_id, requested, session, catalog)


async def remove_role(
    team_id: uuid.UUID, user_id: uuid.UUID, role: Role, session: AsyncSession
) -> Membership:
    """Take one role away; the membership is deactivated with its last role."""
    membership = await get_membership(team_id, user_id, session)
    if not membership or not membership.is_active:
        raise NotFoundError("Membership not found")

    roles = to_roles(membership.roles)
    if role not in roles:
        raise NotFoundError(f"User does not hold role '{role.value}' in this team")

    remaining = roles - {role}
    membership.roles = to_column(remaining)
    if not remaining:
        membership.is_active = False
    membership.updated_at = utcnow()
    session.add(membership)
    await session.flush()

    log.info(
        "membership.role_removed",
        team_id=str(team_id),
        user_id=str(user_id),
        role=role.value,
        active=membership.is_active,
    )
    return membership


async def deactivate_membership(
    team_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession
) -> Membership:
    membership = await get_membership(team_id, user_id, session)
    if not membership or not membership.is_active:
        raise NotFoundError("Membership not found")

    membership.is_active = False
    membership.updated_at = utcnow()
    session.add(membership)
    await session.flush()

    log.info("membership.deactivated", team_id=str(team_id), user_id=str(user_id))
    return membership


# ---------------------------------------------------------------------------
# Placeholders for teams that do not exist yet
# ---------------------------------------------------------------------------

async def ensure_placeholder(
    user_id: uuid.UUID, team_name: str, session: AsyncSession
) -> Membership:
    """Inactive, role-less membership parked on a requested team name."""
    result = await session.execute(
        select(Membership).where(
            Membership.team_id.is_(None),
            Membership.user_id == user_id,
            Membership.pending_team_name == team_name,
        )
    )
    placeholder = result.scalar_one_or_none()
    if placeholder:
        return placeholder

    placeholder = Membership(
        team_id=None,
        user_id=user_id,
        roles=[],
        is_active=False,
        pending_team_name=team_name,
    )
    session.add(placeholder)
    await session.flush()
    return placeholder


async def upgrade_placeholders(
    team_name: str,
    user_ids: Iterable[uuid.UUID],
    team_id: uuid.UUID,
    session: AsyncSession,
) -> int:
    """Attach the placeholders of ``user_ids`` to the newly created team."""
    ids = list(user_ids)
    if not ids:
        return 0
    result = await session.execute(
        select(Membership).where(
            Membership.team_id.is_(None),
            Membership.pending_team_name == team_name,
            Membership.user_id.in_(ids),
        )
    )
    placeholders = result.scalars().all()
    for placeholder in placeholders:
        placeholder.team_id = team_id
        placeholder.updated_at = utcnow()
        session.add(placeholder)
    await session.flush()

    log.info(
        "membership.placeholders_upgraded",
        team_id=str(team_id),
        team_name=team_name,
        count=len(placeholders),
    )
    return len(placeholders)
