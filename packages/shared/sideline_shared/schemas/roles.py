"""
Role catalog shared between the server and its clients.

The catalog is the single source of truth for which team roles exist, which
pairs of roles may never be held together on one membership, and which roles
need extra information when they are requested.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from .common import Role, sort_roles


class RoleCatalog:
    """Immutable role catalog with a symmetric incompatibility relation.

    The relation is checked on construction: every role it mentions must be
    known, no role may exclude itself, and if A excludes B then B must
    exclude A. Use ``from_pairs`` to declare pairs once and get both
    directions.
    """

    def __init__(
        self,
        roles: Iterable[Role],
        incompatible: Mapping[Role, Iterable[Role]],
        required_fields: Optional[Mapping[Role, Iterable[str]]] = None,
    ):
        self._roles = frozenset(Role(r) for r in roles)
        if not self._roles:
            raise ValueError("Role catalog must declare at least one role")

        relation = {Role(role): frozenset(Role(o) for o in others) for role, others in incompatible.items()}
        for role, others in relation.items():
            if role not in self._roles:
                raise ValueError(f"Unknown role '{role.value}' in incompatibility relation")
            for other in others:
                if other not in self._roles:
                    raise ValueError(f"Unknown role '{other.value}' in incompatibility relation")
                if other == role:
                    raise ValueError(f"Role '{role.value}' cannot be incompatible with itself")
                if role not in relation.get(other, frozenset()):
                    raise ValueError(
                        f"Incompatibility is not symmetric: '{role.value}' excludes "
                        f"'{other.value}' but '{other.value}' does not exclude '{role.value}'"
                    )
        self._incompatible: dict[Role, frozenset[Role]] = {
            role: relation.get(role, frozenset()) for role in self._roles
        }

        fields = {Role(role): tuple(names) for role, names in (required_fields or {}).items()}
        for role in fields:
            if role not in self._roles:
                raise ValueError(f"Unknown role '{role.value}' in required fields")
        self._required_fields = fields

    @classmethod
    def from_pairs(
        cls,
        roles: Iterable[Role],
        pairs: Iterable[tuple[Role, Role]],
        required_fields: Optional[Mapping[Role, Iterable[str]]] = None,
    ) -> RoleCatalog:
        """Build a catalog from unordered incompatible pairs."""
        relation: dict[Role, set[Role]] = {}
        for a, b in pairs:
            relation.setdefault(a, set()).add(b)
            relation.setdefault(b, set()).add(a)
        return cls(roles, relation, required_fields)

    @property
    def roles(self) -> frozenset[Role]:
        return self._roles

    def __contains__(self, role: object) -> bool:
        return role in self._roles

    def incompatible_with(self, role: Role) -> frozenset[Role]:
        try:
            return self._incompatible[Role(role)]
        except KeyError:
            raise ValueError(f"Unknown role '{role}'") from None

    def required_fields(self, role: Role) -> tuple[str, ...]:
        return self._required_fields.get(Role(role), ())

    def conflicts(
        self, held: Iterable[Role], requested: Iterable[Role]
    ) -> dict[Role, frozenset[Role]]:
        """Map each requested role to the roles it clashes with.

        Clashes are looked for among the roles already held and among the
        other requested roles. Roles without clashes are left out.
        """
        requested_set = frozenset(Role(r) for r in requested)
        pool = frozenset(Role(r) for r in held) | requested_set
        found: dict[Role, frozenset[Role]] = {}
        for role in requested_set:
            clash = self.incompatible_with(role) & pool
            if clash:
                found[role] = clash
        return found

    def missing_fields(
        self, requested: Iterable[Role], ancillary: Optional[Mapping[str, object]]
    ) -> dict[Role, list[str]]:
        """Required ancillary fields that are absent or blank, per role."""
        data = ancillary or {}
        missing: dict[Role, list[str]] = {}
        for role in sort_roles(requested):
            absent = [
                name for name in self.required_fields(role)
                if not str(data.get(name) or "").strip()
            ]
            if absent:
                missing[role] = absent
        return missing

    def available_roles(
        self, held: Iterable[Role], pending: Iterable[Role] = ()
    ) -> list[Role]:
        """Roles a member could still ask for in a team."""
        held_set = frozenset(Role(r) for r in held)
        taken = held_set | frozenset(Role(r) for r in pending)
        blocked: set[Role] = set()
        for role in held_set:
            blocked |= self.incompatible_with(role)
        return [role for role in sort_roles(self._roles) if role not in taken and role not in blocked]


DEFAULT_CATALOG = RoleCatalog.from_pairs(
    roles=list(Role),
    pairs=[(Role.PARENT, Role.PLAYER)],
    required_fields={Role.PARENT: ["player_name"]},
)
