"""
Identity resolution for Sideline.

Authentication happens elsewhere; this module only turns an already issued
session (JWT cookie or bearer token) into a user id and loads the user's
global admin flag. Authorization lives in ``sideline.core.guard``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sideline.core.config import get_settings
from sideline.core.database import get_session
from sideline.models.user import User

log = structlog.get_logger()
settings = get_settings()

bearer_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class Identity:
    """The authenticated caller as the access engine sees it."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.email = user.email
        self.is_admin = bool(user.is_admin)


def resolve_user_id(token: Optional[str], authorization: Optional[str]) -> uuid.UUID:
    """Extract the user id from a session cookie or Authorization header."""
    if token:
        try:
            return uuid.UUID(decode_jwt(token)["sub"])
        except (jwt.PyJWTError, KeyError, ValueError):
            raise HTTPException(status_code=401, detail="Invalid or expired session")

    if authorization and authorization.startswith("Bearer "):
        value = authorization[7:].strip()
        try:
            return uuid.UUID(decode_jwt(value)["sub"])
        except jwt.PyJWTError:
            pass
        except (KeyError, ValueError):
            raise HTTPException(status_code=401, detail="Invalid session token")
        if settings.allow_uuid_bearer:
            try:
                return uuid.UUID(value)
            except ValueError:
                pass
        raise HTTPException(status_code=401, detail="Invalid bearer token")

    raise HTTPException(status_code=401, detail="Authentication required")


async def get_identity(
    request: Request,
    authorization: Optional[str] = Depends(bearer_header),
    session: AsyncSession = Depends(get_session),
) -> Identity:
    """Main identity dependency. Tries the session cookie, then the bearer token."""
    user_id = resolve_user_id(request.cookies.get(settings.session_cookie_name), authorization)

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    identity = Identity(user)
    request.state.identity = identity
    return identity
