"""
Module: routing_kernel.selectors.directory_selector
Responsibility: SQLAlchemy-backed implementation of the ``Directory``
    protocol over the models in ``routing_kernel.models.directory``.

Ordering of multiple holders:
    Position holders are returned primary assignment first, then earliest
    ``valid_from``, then ``user_id``.  Role holders are returned earliest
    ``valid_from`` first, then ``user_id``.  The resolver takes the first,
    so this ordering is the tie-break between simultaneous holders.
    A user appearing through several matching assignments is listed once.

Note:
    Every query is awaited on the caller's AsyncSession, so concurrent
    resolutions for different requests interleave on one event loop.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import or_, select

from routing_kernel.domain.route import OrganizationUnit, Position, User
from routing_kernel.exceptions import MalformedDataError
from routing_kernel.models.directory import (
    ApprovalRoleAssignmentModel,
    OrganizationModel,
    PositionAssignmentModel,
    PositionModel,
    UserModel,
)
from routing_kernel.selectors.base import BaseSelector


def _dedupe_users(rows: list[UserModel]) -> list[User]:
    seen: set[str] = set()
    users: list[User] = []
    for row in rows:
        if row.user_id in seen:
            continue
        seen.add(row.user_id)
        users.append(row.to_dto())
    return users


class SqlDirectory(BaseSelector):
    """Directory backed by the ORM directory tables."""

    collaborator_name = "directory"

    async def get_users_by_organization_and_position(
        self,
        org_unit_id: str,
        position_id: str,
        as_of: date,
    ) -> list[User]:
        stmt = (
            select(UserModel)
            .join(
                PositionAssignmentModel,
                PositionAssignmentModel.user_id == UserModel.user_id,
            )
            .where(
                PositionAssignmentModel.unit_id == org_unit_id,
                PositionAssignmentModel.position_id == position_id,
                PositionAssignmentModel.valid_from <= as_of,
                or_(
                    PositionAssignmentModel.valid_to.is_(None),
                    PositionAssignmentModel.valid_to >= as_of,
                ),
            )
            .order_by(
                PositionAssignmentModel.is_primary.desc(),
                PositionAssignmentModel.valid_from.asc(),
                UserModel.user_id.asc(),
            )
        )
        rows = await self._scalars("get_users_by_organization_and_position", stmt)
        return _dedupe_users(rows)

    async def get_users_by_approval_role(
        self,
        role_id: str,
        target_org_unit_id: str | None,
        as_of: date,
    ) -> list[User]:
        if target_org_unit_id is None:
            scope = ApprovalRoleAssignmentModel.target_unit_id.is_(None)
        else:
            scope = ApprovalRoleAssignmentModel.target_unit_id == target_org_unit_id

        stmt = (
            select(UserModel)
            .join(
                ApprovalRoleAssignmentModel,
                ApprovalRoleAssignmentModel.user_id == UserModel.user_id,
            )
            .where(
                ApprovalRoleAssignmentModel.role_id == role_id,
                scope,
                ApprovalRoleAssignmentModel.valid_from <= as_of,
                or_(
                    ApprovalRoleAssignmentModel.valid_to.is_(None),
                    ApprovalRoleAssignmentModel.valid_to >= as_of,
                ),
            )
            .order_by(
                ApprovalRoleAssignmentModel.valid_from.asc(),
                UserModel.user_id.asc(),
            )
        )
        rows = await self._scalars("get_users_by_approval_role", stmt)
        return _dedupe_users(rows)

    async def get_user(self, user_id: str) -> User | None:
        row = await self._scalar_one_or_none(
            "get_user",
            select(UserModel).where(UserModel.user_id == user_id),
        )
        return row.to_dto() if row is not None else None

    async def get_organization(self, org_unit_id: str) -> OrganizationUnit | None:
        row = await self._scalar_one_or_none(
            "get_organization",
            select(OrganizationModel).where(OrganizationModel.unit_id == org_unit_id),
        )
        if row is None:
            return None
        if row.parent_unit_id == row.unit_id:
            raise MalformedDataError(
                self.collaborator_name,
                "OrganizationUnit",
                org_unit_id,
                "unit is its own parent",
            )
        return row.to_dto()

    async def get_position(self, position_id: str) -> Position | None:
        row = await self._scalar_one_or_none(
            "get_position",
            select(PositionModel).where(PositionModel.position_id == position_id),
        )
        return row.to_dto() if row is not None else None
