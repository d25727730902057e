"""
Request workflow: join, role and team requests and their admin review.

Handles:
- Submission with role validation and the one-pending-request rule
- Requests against a team name, parked on a placeholder membership
- Approval: team creation, sibling redirection, role merge for every requester
- Rejection with reviewer metadata

All writes of one review share the caller's session. The status change is the
last write and is conditional on the request still being pending.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sideline.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from sideline.models.base import utcnow
from sideline.models.request import TeamRequest
from sideline.services import memberships as membership_service
from sideline.services import teams as team_service
from sideline_shared.schemas.common import (
    REQUEST_TRANSITIONS,
    RequestKind,
    RequestStatus,
    ReviewDecision,
    Role,
)
from sideline_shared.schemas.roles import DEFAULT_CATALOG, RoleCatalog

log = structlog.get_logger()


@dataclass
class ReviewOutcome:
    request: TeamRequest
    team_id: Optional[uuid.UUID] = None
    # every request approved by this review, the reviewed one last
    approved: list[TeamRequest] = field(default_factory=list)

    @property
    def approved_request_ids(self) -> list[uuid.UUID]:
        return [r.id for r in self.approved]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_request(request_id: uuid.UUID, session: AsyncSession) -> TeamRequest:
    result = await session.execute(select(TeamRequest).where(TeamRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Request not found")
    return request


async def find_pending(
    user_id: uuid.UUID,
    session: AsyncSession,
    *,
    team_id: Optional[uuid.UUID] = None,
    team_name: Optional[str] = None,
) -> Optional[TeamRequest]:
    """Pending request of a user for a team, or for a not-yet-created team name."""
    query = select(TeamRequest).where(
        TeamRequest.user_id == user_id,
        TeamRequest.status == RequestStatus.PENDING.value,
    )
    if team_id is not None:
        query = query.where(TeamRequest.team_id == team_id)
    else:
        query = query.where(
            TeamRequest.team_id.is_(None), TeamRequest.team_name == team_name
        )
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none()


async def list_pending_by_team_name(
    team_name: str, session: AsyncSession
) -> list[TeamRequest]:
    result = await session.execute(
        select(TeamRequest)
        .where(
            TeamRequest.team_id.is_(None),
            TeamRequest.team_name == team_name,
            TeamRequest.status == RequestStatus.PENDING.value,
        )
        .order_by(TeamRequest.created_at)
    )
    return list(result.scalars().all())


async def list_pending_requests(
    session: AsyncSession, team_id: Optional[uuid.UUID] = None
) -> list[TeamRequest]:
    """Pending requests, newest first, optionally for one team."""
    query = select(TeamRequest).where(TeamRequest.status == RequestStatus.PENDING.value)
    if team_id is not None:
        query = query.where(TeamRequest.team_id == team_id)
    result = await session.execute(query.order_by(TeamRequest.created_at.desc()))
    return list(result.scalars().all())


async def list_user_requests(user_id: uuid.UUID, session: AsyncSession) -> list[TeamRequest]:
    result = await session.execute(
        select(TeamRequest)
        .where(TeamRequest.user_id == user_id)
        .order_by(TeamRequest.created_at.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

def _clean_ancillary(ancillary: Optional[Mapping[str, object]]) -> dict[str, str]:
    cleaned = {}
    for key, value in (ancillary or {}).items():
        if value is None:
            continue
        value = str(value).strip()
        if value:
            cleaned[key] = value
    return cleaned


async def _submit(
    user_id: uuid.UUID,
    kind: RequestKind,
    requested_roles: Iterable,
    session: AsyncSession,
    *,
    team_id: Optional[uuid.UUID] = None,
    team_name: Optional[str] = None,
    ancillary: Optional[Mapping[str, object]] = None,
    description: Optional[str] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> TeamRequest:
    if team_id is not None:
        team = await team_service.get_team(team_id, session)
        team_name = team.name
        held = await membership_service.held_roles(team_id, user_id, session)
    else:
        team_name = (team_name or "").strip()
        if not team_name:
            raise ValidationError("A team or a team name is required")
        held = frozenset()

    extra = _clean_ancillary(ancillary)
    roles = membership_service.validate_roles(held, requested_roles, extra, catalog)

    if await find_pending(user_id, session, team_id=team_id, team_name=team_name):
        raise ConflictError("You already have a pending request for this team")

    if team_id is None:
        await membership_service.ensure_placeholder(user_id, team_name, session)

    request = TeamRequest(
        user_id=user_id,
        kind=kind.value,
        team_id=team_id,
        team_name=team_name,
        requested_roles=[role.value for role in roles],
        ancillary=extra,
        description=description,
    )
    session.add(request)
    await session.flush()

    log.info(
        "request.submitted",
        request_id=str(request.id),
        user_id=str(user_id),
        kind=kind.value,
        team_id=str(team_id) if team_id else None,
        team_name=team_name,
        roles=request.requested_roles,
    )
    return request


async def submit_join_request(
    user_id: uuid.UUID,
    team_id: uuid.UUID,
    requested_roles: Iterable[Role],
    session: AsyncSession,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> TeamRequest:
    return await _submit(
        user_id, RequestKind.JOIN, requested_roles, session, team_id=team_id, catalog=catalog
    )


async def submit_role_request(
    user_id: uuid.UUID,
    team_id: Optional[uuid.UUID],
    requested_roles: Iterable[Role],
    session: AsyncSession,
    *,
    ancillary: Optional[Mapping[str, object]] = None,
    team_name: Optional[str] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> TeamRequest:
    """Request roles in a team, or in a team that does not exist yet.

    Without a team id the request targets ``team_name`` and the team is
    created when an admin approves it.
    """
    kind = RequestKind.ROLE if team_id is not None else RequestKind.TEAM
    return await _submit(
        user_id,
        kind,
        requested_roles,
        session,
        team_id=team_id,
        team_name=team_name,
        ancillary=ancillary,
        catalog=catalog,
    )


async def submit_team_request(
    user_id: uuid.UUID,
    team_name: str,
    requested_roles: Iterable[Role],
    session: AsyncSession,
    *,
    description: Optional[str] = None,
    ancillary: Optional[Mapping[str, object]] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> TeamRequest:
    return await _submit(
        user_id,
        RequestKind.TEAM,
        requested_roles,
        session,
        team_name=team_name,
        ancillary=ancillary,
        description=description,
        catalog=catalog,
    )


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------

async def _load_for_update(request_id: uuid.UUID, session: AsyncSession) -> TeamRequest:
    result = await session.execute(
        select(TeamRequest).where(TeamRequest.id == request_id).with_for_update()
    )
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Request not found")
    return request


async def _transition(
    requests: list[TeamRequest],
    status: RequestStatus,
    reviewer_id: uuid.UUID,
    notes: Optional[str],
    session: AsyncSession,
) -> None:
    """Move pending requests to ``status``; fails if any was already reviewed."""
    if status not in REQUEST_TRANSITIONS[RequestStatus.PENDING]:
        raise InvalidStateError(f"Cannot move a request to '{status.value}'")

    now = utcnow()
    ids = [r.id for r in requests]
    result = await session.execute(
        update(TeamRequest)
        .where(
            TeamRequest.id.in_(ids),
            TeamRequest.status == RequestStatus.PENDING.value,
        )
        .values(
            status=status.value,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            review_notes=notes,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != len(ids):
        raise InvalidStateError("Request has already been reviewed")

    for request in requests:
        await session.refresh(request)


async def _approve(
    request: TeamRequest, session: AsyncSession, catalog: RoleCatalog
) -> tuple[uuid.UUID, list[TeamRequest]]:
    if request.team_id is not None:
        approved = [request]
    else:
        team = await team_service.create_team(request.team_name, request.description, session)
        siblings = await list_pending_by_team_name(request.team_name, session)
        approved = [r for r in siblings if r.id != request.id] + [request]
        for r in approved:
            r.team_id = team.id
            session.add(r)
        await session.flush()
        await membership_service.upgrade_placeholders(
            request.team_name, {r.user_id for r in approved}, team.id, session
        )

    for r in approved:
        await membership_service.merge_roles(
            r.team_id, r.user_id, membership_service.to_roles(r.requested_roles), session, catalog
        )
    return request.team_id, approved


async def review_request(
    request_id: uuid.UUID,
    reviewer_id: uuid.UUID,
    decision: ReviewDecision,
    session: AsyncSession,
    *,
    notes: Optional[str] = None,
    catalog: RoleCatalog = DEFAULT_CATALOG,
) -> ReviewOutcome:
    """Approve or reject a pending request.

    Raises NotFoundError for an unknown request and InvalidStateError when it
    is no longer pending. A persistence failure while applying an approval is
    raised as RetryableError; the caller's session is then rolled back and the
    request stays pending.
    """
    request = await _load_for_update(request_id, session)
    if request.status != RequestStatus.PENDING.value:
        raise InvalidStateError(f"Request is already {request.status}")

    if decision is ReviewDecision.REJECT:
        await _transition([request], RequestStatus.REJECTED, reviewer_id, notes, session)
        log.info(
            "request.rejected",
            request_id=str(request.id),
            reviewer_id=str(reviewer_id),
        )
        return ReviewOutcome(request=request, team_id=request.team_id)

    try:
        team_id, approved = await _approve(request, session, catalog)
        await _transition(approved, RequestStatus.APPROVED, reviewer_id, notes, session)
    except SQLAlchemyError as exc:
        log.error(
            "request.approval_failed",
            request_id=str(request_id),
            error=str(exc),
        )
        raise RetryableError("The approval could not be saved, please retry") from exc

    log.info(
        "request.approved",
        request_id=str(request.id),
        reviewer_id=str(reviewer_id),
        team_id=str(team_id),
        approved=len(approved),
    )
    return ReviewOutcome(request=request, team_id=team_id, approved=approved)
