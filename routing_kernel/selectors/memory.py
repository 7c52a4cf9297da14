"""
Module: routing_kernel.selectors.memory
Responsibility: In-memory Directory and History Store.

Used for tests, demos, and callers that already hold the directory in
memory (e.g. a snapshot exported from an HR system).  Lookups return
results in insertion order, so "first holder" means "first assignment
added".
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from routing_kernel.domain.route import (
    ApprovalRoleAssignment,
    Decision,
    OrganizationUnit,
    Position,
    PositionAssignment,
    User,
)


class InMemoryDirectory:
    """Directory over plain collections of domain objects."""

    def __init__(
        self,
        users: Iterable[User] = (),
        organizations: Iterable[OrganizationUnit] = (),
        positions: Iterable[Position] = (),
        position_assignments: Iterable[PositionAssignment] = (),
        role_assignments: Iterable[ApprovalRoleAssignment] = (),
    ) -> None:
        self._users: dict[str, User] = {u.id: u for u in users}
        self._organizations: dict[str, OrganizationUnit] = {o.id: o for o in organizations}
        self._positions: dict[str, Position] = {p.id: p for p in positions}
        self._position_assignments: list[PositionAssignment] = list(position_assignments)
        self._role_assignments: list[ApprovalRoleAssignment] = list(role_assignments)

    # -- mutation helpers (tests / seeding) ---------------------------------

    def add_user(self, user: User) -> None:
        self._users[user.id] = user

    def remove_user(self, user_id: str) -> None:
        self._users.pop(user_id, None)

    def add_organization(self, unit: OrganizationUnit) -> None:
        self._organizations[unit.id] = unit

    def add_position(self, position: Position) -> None:
        self._positions[position.id] = position

    def assign_position(self, assignment: PositionAssignment) -> None:
        self._position_assignments.append(assignment)

    def assign_role(self, assignment: ApprovalRoleAssignment) -> None:
        self._role_assignments.append(assignment)

    # -- Directory protocol -------------------------------------------------

    def _users_for(self, user_ids: Iterable[str]) -> list[User]:
        seen: set[str] = set()
        users: list[User] = []
        for user_id in user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)
            user = self._users.get(user_id)
            # Assignments pointing at a deleted user are stale: skip them.
            if user is not None:
                users.append(user)
        return users

    async def get_users_by_organization_and_position(
        self,
        org_unit_id: str,
        position_id: str,
        as_of: date,
    ) -> list[User]:
        return self._users_for(
            a.user_id
            for a in self._position_assignments
            if a.organization_id == org_unit_id
            and a.position_id == position_id
            and a.is_valid_on(as_of)
        )

    async def get_users_by_approval_role(
        self,
        role_id: str,
        target_org_unit_id: str | None,
        as_of: date,
    ) -> list[User]:
        return self._users_for(
            a.user_id
            for a in self._role_assignments
            if a.role_id == role_id
            and a.target_organization_id == target_org_unit_id
            and a.is_valid_on(as_of)
        )

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def get_organization(self, org_unit_id: str) -> OrganizationUnit | None:
        return self._organizations.get(org_unit_id)

    async def get_position(self, position_id: str) -> Position | None:
        return self._positions.get(position_id)


class InMemoryHistoryStore:
    """Append-only decision log keyed by request id."""

    def __init__(self, decisions: Iterable[Decision] = ()) -> None:
        self._by_request: dict[str, list[Decision]] = {}
        for decision in decisions:
            self.record(decision)

    def record(self, decision: Decision) -> None:
        self._by_request.setdefault(decision.request_id, []).append(decision)

    async def get_approval_history(self, request_id: str) -> list[Decision]:
        return list(self._by_request.get(request_id, ()))
