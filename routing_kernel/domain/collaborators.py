"""
Collaborator interfaces consumed by the route resolver.

Responsibility:
    Declare the read-only Directory and History Store contracts as
    ``typing.Protocol`` classes.  Implementations are injected into the
    resolver's constructor; the kernel holds no global client state.

Architecture position:
    Kernel > Domain.  Interfaces only; adapters live in ``selectors/``.

Contract shared by all methods:
    - Every method is a coroutine.  Callers bound their latency.
    - A missing entity is reported as ``None`` (single lookups) or ``[]``
      (list lookups), never as an exception.
    - An unreachable backend or unreadable row raises a ``CollaboratorError``
      subclass, which aborts the resolution.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from routing_kernel.domain.route import (
    Decision,
    OrganizationUnit,
    Position,
    User,
)


class Directory(Protocol):
    """Organizational facts: hierarchy, assignments, users."""

    async def get_users_by_organization_and_position(
        self,
        org_unit_id: str,
        position_id: str,
        as_of: date,
    ) -> list[User]:
        """Users holding exactly ``position_id`` in ``org_unit_id`` on ``as_of``.

        The first element is the one the resolver picks.
        """
        ...

    async def get_users_by_approval_role(
        self,
        role_id: str,
        target_org_unit_id: str | None,
        as_of: date,
    ) -> list[User]:
        """Holders of ``role_id`` scoped to ``target_org_unit_id``.

        ``target_org_unit_id`` None selects globally scoped holders only.
        """
        ...

    async def get_user(self, user_id: str) -> User | None:
        ...

    async def get_organization(self, org_unit_id: str) -> OrganizationUnit | None:
        ...

    async def get_position(self, position_id: str) -> Position | None:
        ...


class HistoryStore(Protocol):
    """Append-only decision history per request."""

    async def get_approval_history(self, request_id: str) -> list[Decision]:
        """All decisions recorded for ``request_id``, orderable by step order."""
        ...
