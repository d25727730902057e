from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Role(str, Enum):
    COACH = "coach"
    MANAGER = "manager"
    PLAYER = "player"
    PARENT = "parent"


class RequestKind(str, Enum):
    JOIN = "join"
    ROLE = "role"
    TEAM = "team"  # targets a team name; the team is created on approval


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# A request leaves PENDING exactly once; terminal states have no exits
REQUEST_TRANSITIONS: dict[RequestStatus, list[RequestStatus]] = {
    RequestStatus.PENDING: [RequestStatus.APPROVED, RequestStatus.REJECTED],
    RequestStatus.APPROVED: [],
    RequestStatus.REJECTED: [],
}


def sort_roles(roles) -> list[Role]:
    """Roles in declaration order, duplicates collapsed."""
    wanted = {Role(r) for r in roles}
    return [role for role in Role if role in wanted]


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None
