"""
Evaluator tests: visibility rules, the all-teams view and category pruning.
"""

from __future__ import annotations

import uuid

import pytest

from sideline_shared.schemas.access import (
    AccessContext,
    NavCategory,
    NavItem,
    NavRequirement,
    RoleProfile,
    Visibility,
    evaluate,
    evaluate_node,
    visible_tree,
)
from sideline_shared.schemas.common import Role

TEAM1 = uuid.uuid4()
TEAM2 = uuid.uuid4()

COACH_ONLY = NavRequirement(team_required=True, required_roles={Role.COACH})
TEAM_ONLY = NavRequirement(team_required=True)
GLOBAL = NavRequirement(is_global=True)
ADMIN = NavRequirement(admin_only=True)


def ctx(team_id=None) -> AccessContext:
    return AccessContext(selected_team_id=team_id)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class TestRules:

    def test_admin_only_depends_on_flag(self):
        assert evaluate(ADMIN, RoleProfile(is_admin=True)) is Visibility.VISIBLE
        assert evaluate(ADMIN, RoleProfile(is_admin=False)) is Visibility.HIDDEN

    def test_admin_only_ignores_team_context(self):
        admin = RoleProfile(is_admin=True)
        member = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        for context in (ctx(), ctx(TEAM1), ctx(TEAM2)):
            assert evaluate(ADMIN, admin, context) is Visibility.VISIBLE
            assert evaluate(ADMIN, member, context) is Visibility.HIDDEN

    def test_global_without_conditions_always_visible(self):
        assert evaluate(GLOBAL, RoleProfile()) is Visibility.VISIBLE
        assert evaluate(GLOBAL, RoleProfile(), ctx(TEAM1)) is Visibility.VISIBLE

    def test_default_requirement_fails_closed(self):
        member = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        assert evaluate(NavRequirement(), member, ctx(TEAM1)) is Visibility.HIDDEN

    def test_global_with_roles_is_hidden(self):
        requirement = NavRequirement(is_global=True, required_roles={Role.COACH})
        member = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        assert evaluate(requirement, member, ctx(TEAM1)) is Visibility.HIDDEN

    def test_team_required_without_roles_in_aggregate(self):
        member = RoleProfile(team_roles={TEAM1: frozenset({Role.PARENT})})
        assert evaluate(TEAM_ONLY, member, ctx()) is Visibility.VISIBLE

    def test_concrete_team_requires_membership(self):
        member = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        assert evaluate(TEAM_ONLY, member, ctx(TEAM1)) is Visibility.VISIBLE
        assert evaluate(TEAM_ONLY, member, ctx(TEAM2)) is Visibility.HIDDEN
        assert evaluate(COACH_ONLY, member, ctx(TEAM2)) is Visibility.HIDDEN

    def test_global_alias(self):
        requirement = NavRequirement.model_validate({"global": True})
        assert requirement.is_global


class TestNoMemberships:
    """A user with no team roles sees nothing that needs a team or a role."""

    @pytest.mark.parametrize("requirement", [
        TEAM_ONLY,
        COACH_ONLY,
        NavRequirement(required_roles={Role.PLAYER}),
        NavRequirement(is_global=True, required_roles={Role.PARENT}),
    ])
    @pytest.mark.parametrize("team_id", [None, TEAM1])
    def test_hidden(self, requirement, team_id):
        assert evaluate(requirement, RoleProfile(), ctx(team_id)) is Visibility.HIDDEN

    def test_admin_without_teams_still_hidden_for_team_entries(self):
        admin = RoleProfile(is_admin=True)
        assert evaluate(COACH_ONLY, admin, ctx()) is Visibility.HIDDEN


# ---------------------------------------------------------------------------
# Mixed roles across teams
# ---------------------------------------------------------------------------

class TestMixedTeams:
    """Coach in one team, player in another."""

    @pytest.fixture
    def mixed(self):
        return RoleProfile(team_roles={
            TEAM1: frozenset({Role.COACH}),
            TEAM2: frozenset({Role.PLAYER}),
        })

    def test_aggregate_requires_every_team(self, mixed):
        assert evaluate(COACH_ONLY, mixed, ctx()) is Visibility.HIDDEN

    def test_coach_team_selected(self, mixed):
        assert evaluate(COACH_ONLY, mixed, ctx(TEAM1)) is Visibility.VISIBLE

    def test_player_team_selected(self, mixed):
        assert evaluate(COACH_ONLY, mixed, ctx(TEAM2)) is Visibility.HIDDEN

    def test_aggregate_passes_when_every_team_matches(self, mixed):
        requirement = NavRequirement(team_required=True, required_roles={Role.COACH, Role.PLAYER})
        assert evaluate(requirement, mixed, ctx()) is Visibility.VISIBLE

    def test_empty_role_set_does_not_count_as_membership(self):
        profile = RoleProfile(team_roles={TEAM1: frozenset()})
        assert evaluate(TEAM_ONLY, profile, ctx(TEAM1)) is Visibility.HIDDEN

    def test_empty_team_selected_next_to_real_team(self):
        profile = RoleProfile(team_roles={
            TEAM1: frozenset({Role.COACH}),
            TEAM2: frozenset(),
        })
        assert not profile.is_member(TEAM2)
        assert evaluate(TEAM_ONLY, profile, ctx(TEAM2)) is Visibility.HIDDEN
        assert evaluate(TEAM_ONLY, profile, ctx(TEAM1)) is Visibility.VISIBLE

    def test_empty_team_does_not_veto_aggregate(self):
        profile = RoleProfile(team_roles={
            TEAM1: frozenset({Role.COACH}),
            TEAM2: frozenset(),
        })
        assert evaluate(COACH_ONLY, profile, ctx()) is Visibility.VISIBLE


# ---------------------------------------------------------------------------
# Navigation trees
# ---------------------------------------------------------------------------

class TestCategories:

    @pytest.fixture
    def tree(self):
        return [
            NavItem(id="home", label="Home", path="/", requirement=GLOBAL),
            NavCategory(
                id="team",
                label="Team",
                requirement=TEAM_ONLY,
                children=[
                    NavItem(id="roster", label="Roster", path="/roster", requirement=COACH_ONLY),
                    NavItem(
                        id="stats",
                        label="Stats",
                        path="/stats",
                        requirement=NavRequirement(team_required=True, required_roles={Role.PLAYER}),
                    ),
                ],
            ),
        ]

    def test_category_hidden_without_visible_child(self, tree):
        parent = RoleProfile(team_roles={TEAM1: frozenset({Role.PARENT})})
        assert evaluate_node(tree[1], parent, ctx(TEAM1)) is Visibility.HIDDEN
        assert [n.id for n in visible_tree(tree, parent, ctx(TEAM1))] == ["home"]

    def test_category_keeps_only_visible_children(self, tree):
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        pruned = visible_tree(tree, coach, ctx(TEAM1))
        assert [n.id for n in pruned] == ["home", "team"]
        assert [c.id for c in pruned[1].children] == ["roster"]

    def test_category_own_requirement_applies(self, tree):
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        assert evaluate_node(tree[1], coach, ctx(TEAM2)) is Visibility.HIDDEN

    def test_pruning_does_not_mutate_input(self, tree):
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        visible_tree(tree, coach, ctx(TEAM1))
        assert len(tree[1].children) == 2

    def test_nested_categories(self):
        inner = NavCategory(
            id="inner",
            label="Inner",
            requirement=TEAM_ONLY,
            children=[NavItem(id="leaf", label="Leaf", path="/leaf", requirement=COACH_ONLY)],
        )
        outer = NavCategory(id="outer", label="Outer", requirement=TEAM_ONLY, children=[inner])
        coach = RoleProfile(team_roles={TEAM1: frozenset({Role.COACH})})
        player = RoleProfile(team_roles={TEAM1: frozenset({Role.PLAYER})})
        assert evaluate_node(outer, coach, ctx(TEAM1)) is Visibility.VISIBLE
        assert evaluate_node(outer, player, ctx(TEAM1)) is Visibility.HIDDEN
