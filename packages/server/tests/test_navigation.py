"""
Navigation tree and landing path tests.
"""

from __future__ import annotations

import uuid

from sideline.services.navigation import NAV_TREE, landing_path, visible_navigation
from sideline_shared.schemas.access import AccessContext, NavCategory, RoleProfile
from sideline_shared.schemas.common import Role

TEAM1 = uuid.uuid4()
TEAM2 = uuid.uuid4()


def ids(nodes) -> list[str]:
    out = []
    for node in nodes:
        out.append(node.id)
        if isinstance(node, NavCategory):
            out.extend(ids(node.children))
    return out


class TestNavTree:

    def test_ids_unique(self):
        all_ids = ids(NAV_TREE)
        assert len(all_ids) == len(set(all_ids))

    def test_no_memberships_sees_home_only(self):
        assert ids(visible_navigation(RoleProfile())) == ["home"]

    def test_admin_without_teams(self):
        visible = ids(visible_navigation(RoleProfile(is_admin=True)))
        assert visible[0] == "home"
        assert "admin" in visible
        assert "admin-team-members" in visible
        assert "team-roster" not in visible

    def test_coach_in_selected_team(self):
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        visible = ids(visible_navigation(coach, AccessContext(selected_team_id=TEAM1)))
        assert {"team-roster", "analyze-video", "game-stats", "player-stats"} <= set(visible)
        assert "admin" not in visible

    def test_parent_in_selected_team(self):
        parent = RoleProfile(team_roles={TEAM1: frozenset({Role.PARENT})})
        visible = ids(visible_navigation(parent, AccessContext(selected_team_id=TEAM1)))
        assert "team-schedule" in visible
        assert "video-library" in visible
        # no visible child left in these categories
        assert "players" not in visible
        assert "teams" not in visible

    def test_aggregate_view_mixed_roles(self):
        mixed = RoleProfile(team_roles={
            TEAM1: frozenset({Role.COACH}),
            TEAM2: frozenset({Role.PLAYER}),
        })
        visible = ids(visible_navigation(mixed))
        assert "team-roster" not in visible
        assert "player-stats" in visible
        assert "video-library" in visible

    def test_team_not_joined(self):
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        visible = ids(visible_navigation(coach, AccessContext(selected_team_id=TEAM2)))
        assert visible == ["home"]


class TestLandingPath:

    def test_signed_out(self):
        assert landing_path(None) == "/login"

    def test_member(self):
        profile = RoleProfile(team_roles={TEAM1: frozenset({Role.PLAYER})})
        assert landing_path(profile) == "/"

    def test_admin_member_goes_home(self):
        profile = RoleProfile(is_admin=True, team_roles={TEAM1: frozenset({Role.COACH})})
        assert landing_path(profile) == "/"

    def test_admin_without_teams(self):
        assert landing_path(RoleProfile(is_admin=True)) == "/admin"

    def test_no_roles(self):
        assert landing_path(RoleProfile()) == "/role-request"
