"""
Access requirements, role profiles and the visibility evaluator.

Everything here is pure: the same requirement, profile and context always
produce the same decision, so the functions are safe to call from request
handlers, navigation rendering and tests alike.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .common import Role


class Visibility(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class NavRequirement(BaseModel):
    """Declarative requirement attached to a protected view or nav entry."""

    admin_only: bool = False
    is_global: bool = Field(default=False, alias="global")
    team_required: bool = False
    required_roles: frozenset[Role] = frozenset()

    model_config = {"frozen": True, "populate_by_name": True}


class RoleProfile(BaseModel):
    """A user's global admin flag plus their role set in every team."""

    user_id: Optional[uuid.UUID] = None
    is_admin: bool = False
    team_roles: dict[uuid.UUID, frozenset[Role]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("team_roles")
    @classmethod
    def drop_empty_role_sets(cls, value: dict[uuid.UUID, frozenset[Role]]):
        # a team with no roles is not a membership
        return {team_id: roles for team_id, roles in value.items() if roles}

    def roles_in(self, team_id: uuid.UUID) -> frozenset[Role]:
        return self.team_roles.get(team_id, frozenset())

    def is_member(self, team_id: uuid.UUID) -> bool:
        return team_id in self.team_roles

    def has_any_role(self) -> bool:
        return bool(self.team_roles)


class AccessContext(BaseModel):
    """Which team the caller is looking at; ``None`` is the all-teams view."""

    selected_team_id: Optional[uuid.UUID] = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Navigation tree
# ---------------------------------------------------------------------------

class NavItem(BaseModel):
    kind: Literal["item"] = "item"
    id: str
    label: str
    path: str
    requirement: NavRequirement = Field(default_factory=NavRequirement)


class NavCategory(BaseModel):
    kind: Literal["category"] = "category"
    id: str
    label: str
    requirement: NavRequirement = Field(default_factory=NavRequirement)
    children: list[NavNode] = Field(default_factory=list)


NavNode = Annotated[Union[NavItem, NavCategory], Field(discriminator="kind")]

NavCategory.model_rebuild()


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

def _decide(allowed: bool) -> Visibility:
    return Visibility.VISIBLE if allowed else Visibility.HIDDEN


def evaluate(
    requirement: NavRequirement,
    profile: RoleProfile,
    context: Optional[AccessContext] = None,
) -> Visibility:
    """Decide whether ``profile`` satisfies ``requirement`` in ``context``.

    Rules, first match wins:

    1. Admin-only requirements look at the global admin flag and nothing else.
    2. Global requirements with no team or role condition are always visible.
    3. A user holding no role in any team fails every team or role condition.
    4. In the all-teams view a team-required requirement with roles passes
       only when *every* team of the user grants one of the roles.
    5. With a team selected, the user must be a member of it and, when roles
       are listed, hold one of them there.
    6. Anything else is hidden.
    """
    context = context or AccessContext()
    required = requirement.required_roles

    if requirement.admin_only:
        return _decide(profile.is_admin)

    if requirement.is_global and not requirement.team_required and not required:
        return Visibility.VISIBLE

    if not profile.has_any_role() and (required or requirement.team_required):
        return Visibility.HIDDEN

    if not requirement.team_required:
        return Visibility.HIDDEN

    if context.selected_team_id is None:
        if not required:
            return Visibility.VISIBLE
        teams = list(profile.team_roles.values())
        if not teams:
            return Visibility.HIDDEN
        # TODO: confirm with product whether "any team" was intended here
        return _decide(all(roles & required for roles in teams))

    if not profile.is_member(context.selected_team_id):
        return Visibility.HIDDEN
    if not required:
        return Visibility.VISIBLE
    return _decide(bool(profile.roles_in(context.selected_team_id) & required))


def evaluate_node(
    node: Union[NavItem, NavCategory],
    profile: RoleProfile,
    context: Optional[AccessContext] = None,
) -> Visibility:
    """Evaluate a nav node; a category also needs one visible child."""
    own = evaluate(node.requirement, profile, context)
    if isinstance(node, NavItem) or own is Visibility.HIDDEN:
        return own
    return _decide(
        any(evaluate_node(child, profile, context) is Visibility.VISIBLE for child in node.children)
    )


def visible_tree(
    nodes: list[Union[NavItem, NavCategory]],
    profile: RoleProfile,
    context: Optional[AccessContext] = None,
) -> list[Union[NavItem, NavCategory]]:
    """Prune ``nodes`` down to what the profile may see. Empty categories are dropped."""
    result: list[Union[NavItem, NavCategory]] = []
    for node in nodes:
        if evaluate_node(node, profile, context) is Visibility.HIDDEN:
            continue
        if isinstance(node, NavCategory):
            node = node.model_copy(
                update={"children": visible_tree(node.children, profile, context)}
            )
        result.append(node)
    return result
