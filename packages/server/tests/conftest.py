"""
Shared fixtures: in-memory SQLite per test, seeded users/teams, an API client
bound to the test database and a recording notifier.
"""

from __future__ import annotations

import os

os.environ.setdefault("SIDELINE_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SIDELINE_LOG_FORMAT", "text")

import uuid
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import sideline.models  # noqa: F401  registers tables on the metadata
from sideline.core.database import build_engine, get_session
from sideline.core.notifications import Notifier, get_notifier
from sideline.main import app
from sideline.models.membership import Membership
from sideline.models.team import Team
from sideline.models.user import User
from sideline_shared.schemas.common import Role


class RecordingNotifier(Notifier):
    """Collects notifications instead of posting them."""

    def __init__(self):
        super().__init__()
        self.sent: list[dict] = []
        self.rejected: list[dict] = []

    async def membership_granted(self, user_id, team_id, team_name=None, roles=None):
        self.sent.append(
            {"user_id": user_id, "team_id": team_id, "team_name": team_name, "roles": roles}
        )
        return True

    async def request_rejected(self, user_id, team_name=None, roles=None, reason=None):
        self.rejected.append(
            {"user_id": user_id, "team_name": team_name, "roles": roles, "reason": reason}
        )
        return True


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(session):
    async def _make(email: Optional[str] = None, is_admin: bool = False, display_name: Optional[str] = None) -> User:
        user = User(
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            display_name=display_name,
            is_admin=is_admin,
        )
        session.add(user)
        await session.flush()
        return user

    return _make


@pytest.fixture
def make_team(session):
    async def _make(name: Optional[str] = None, description: Optional[str] = None) -> Team:
        team = Team(name=name or f"Team {uuid.uuid4().hex[:6]}", description=description)
        session.add(team)
        await session.flush()
        return team

    return _make


@pytest.fixture
def make_membership(session):
    async def _make(team: Team, user: User, *roles: Role, is_active: bool = True) -> Membership:
        membership = Membership(
            team_id=team.id,
            user_id=user.id,
            roles=[r.value for r in roles],
            is_active=is_active,
        )
        session.add(membership)
        await session.flush()
        return membership

    return _make


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
async def client(session_factory, notifier):
    async def _session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_notifier] = lambda: notifier
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def bearer():
    """Bearer UUID auth, as accepted in local development."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {user.id}"}

    return _headers
