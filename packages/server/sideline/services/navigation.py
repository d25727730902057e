"""
Application navigation and the post-login landing path.

The tree is configuration: every entry declares a requirement and the
evaluator decides what a caller sees for the selected team.
"""

from __future__ import annotations

from typing import Optional, Union

from sideline_shared.schemas.access import (
    AccessContext,
    NavCategory,
    NavItem,
    NavRequirement,
    RoleProfile,
    visible_tree,
)
from sideline_shared.schemas.common import Role

ALL_ROLES = frozenset(Role)
STAFF = frozenset({Role.COACH, Role.MANAGER})

GLOBAL = NavRequirement(is_global=True)
ADMIN = NavRequirement(admin_only=True, is_global=True)
TEAM = NavRequirement(team_required=True)


def _team(*roles: Role) -> NavRequirement:
    return NavRequirement(team_required=True, required_roles=frozenset(roles))


# Video entries are shared across teams but still need a role somewhere, so
# they are team-scoped; a global entry with roles is always hidden.
NAV_TREE: list[Union[NavItem, NavCategory]] = [
    NavItem(id="home", label="Home", path="/", requirement=GLOBAL),
    NavCategory(
        id="players",
        label="Player",
        requirement=TEAM,
        children=[
            NavItem(
                id="player-stats",
                label="Stats",
                path="/team/players/stats",
                requirement=_team(Role.COACH, Role.MANAGER, Role.PLAYER),
            ),
        ],
    ),
    NavCategory(
        id="videos",
        label="Videos",
        requirement=_team(*ALL_ROLES),
        children=[
            NavItem(id="video-library", label="Video Library", path="/videos", requirement=_team(*ALL_ROLES)),
            NavItem(id="analyze-video", label="Analyze Video", path="/videos/analyze", requirement=_team(Role.COACH)),
            NavItem(id="film-review", label="Film Review", path="/videos/reviews", requirement=_team(*ALL_ROLES)),
        ],
    ),
    NavCategory(
        id="games",
        label="Games",
        requirement=TEAM,
        children=[
            NavItem(id="team-schedule", label="Schedule", path="/team/schedule", requirement=_team(*ALL_ROLES)),
            NavItem(id="game-stats", label="Stats", path="/team/games/stats", requirement=_team(*STAFF)),
        ],
    ),
    NavCategory(
        id="teams",
        label="Teams",
        requirement=TEAM,
        children=[
            NavItem(id="team-dashboard", label="Dashboard", path="/team/dashboard", requirement=_team(*STAFF)),
            NavItem(id="team-roster", label="Roster", path="/team/roster", requirement=_team(*STAFF)),
        ],
    ),
    NavCategory(
        id="admin",
        label="Admin",
        requirement=ADMIN,
        children=[
            NavItem(id="admin-overview", label="Overview", path="/admin", requirement=ADMIN),
            NavItem(id="admin-users", label="Manage Users", path="/admin/users", requirement=ADMIN),
            NavItem(id="admin-teams", label="Manage Teams", path="/admin/teams", requirement=ADMIN),
            NavItem(id="admin-team-members", label="Team Members", path="/admin/team-members", requirement=ADMIN),
        ],
    ),
]


def visible_navigation(
    profile: RoleProfile,
    context: Optional[AccessContext] = None,
    tree: Optional[list[Union[NavItem, NavCategory]]] = None,
) -> list[Union[NavItem, NavCategory]]:
    return visible_tree(NAV_TREE if tree is None else tree, profile, context)


def landing_path(profile: Optional[RoleProfile]) -> str:
    """Where a user goes after signing in."""
    if profile is None:
        return "/login"
    if profile.has_any_role():
        return "/"
    if profile.is_admin:
        return "/admin"
    return "/role-request"
