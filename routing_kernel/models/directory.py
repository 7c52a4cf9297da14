"""
Module: routing_kernel.models.directory
Responsibility: ORM persistence for organizational directory facts:
    organization units, positions, users, position assignments and
    approval-role assignments.

Architecture position: Kernel > Models.  May import from db/base.py and
    domain/route.py (DTO conversion only).

Invariants enforced:
    - Directory identifiers are unique per table (``unit_id``, ``position_id``,
      ``user_id``).
    - Assignment ranges satisfy ``valid_to IS NULL OR valid_to >= valid_from``.

Failure modes:
    - IntegrityError on duplicate identifiers or inverted date ranges.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from routing_kernel.db.base import Base
from routing_kernel.domain.route import (
    ApprovalRoleAssignment,
    OrganizationUnit,
    Position,
    PositionAssignment,
    User,
)


class OrganizationModel(Base):
    """An organization unit. ``parent_unit_id`` NULL marks the root."""

    __tablename__ = "organization_units"

    unit_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    parent_unit_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    code: Mapped[str] = mapped_column(String(50), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<OrganizationUnit {self.unit_id} parent={self.parent_unit_id}>"

    def to_dto(self) -> OrganizationUnit:
        return OrganizationUnit(
            id=self.unit_id,
            parent_id=self.parent_unit_id,
            name=self.name,
            code=self.code,
        )

    @classmethod
    def from_dto(cls, dto: OrganizationUnit) -> OrganizationModel:
        return cls(
            unit_id=dto.id,
            parent_unit_id=dto.parent_id,
            name=dto.name,
            code=dto.code,
        )


class PositionModel(Base):
    """A position level; 1 is the highest."""

    __tablename__ = "positions"

    __table_args__ = (
        CheckConstraint("level >= 1", name="ck_positions_level_positive"),
    )

    position_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def to_dto(self) -> Position:
        return Position(id=self.position_id, name=self.name, level=self.level)

    @classmethod
    def from_dto(cls, dto: Position) -> PositionModel:
        return cls(position_id=dto.id, name=dto.name, level=dto.level)


class UserModel(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<User {self.user_id}>"

    def to_dto(self) -> User:
        return User(
            id=self.user_id,
            name=self.name,
            email=self.email,
            is_active=self.is_active,
        )

    @classmethod
    def from_dto(cls, dto: User) -> UserModel:
        return cls(
            user_id=dto.id,
            name=dto.name,
            email=dto.email,
            is_active=dto.is_active,
        )


class PositionAssignmentModel(Base):
    """A user holding a position in a unit over a date range."""

    __tablename__ = "position_assignments"

    __table_args__ = (
        CheckConstraint(
            "valid_to IS NULL OR valid_to >= valid_from",
            name="ck_position_assignments_range",
        ),
        Index(
            "ix_position_assignments_lookup",
            "unit_id", "position_id", "valid_from",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position_id: Mapped[str] = mapped_column(String(64), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> PositionAssignment:
        return PositionAssignment(
            user_id=self.user_id,
            organization_id=self.unit_id,
            position_id=self.position_id,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            is_primary=self.is_primary,
        )

    @classmethod
    def from_dto(cls, dto: PositionAssignment) -> PositionAssignmentModel:
        return cls(
            user_id=dto.user_id,
            unit_id=dto.organization_id,
            position_id=dto.position_id,
            is_primary=dto.is_primary,
            valid_from=dto.valid_from,
            valid_to=dto.valid_to,
        )


class ApprovalRoleAssignmentModel(Base):
    """A user holding an approval role. ``target_unit_id`` NULL = global scope."""

    __tablename__ = "approval_role_assignments"

    __table_args__ = (
        CheckConstraint(
            "valid_to IS NULL OR valid_to >= valid_from",
            name="ck_approval_role_assignments_range",
        ),
        Index(
            "ix_approval_role_assignments_lookup",
            "role_id", "target_unit_id", "valid_from",
        ),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role_id: Mapped[str] = mapped_column(String(64), nullable=False)
    target_unit_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    def to_dto(self) -> ApprovalRoleAssignment:
        return ApprovalRoleAssignment(
            user_id=self.user_id,
            role_id=self.role_id,
            target_organization_id=self.target_unit_id,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
        )

    @classmethod
    def from_dto(cls, dto: ApprovalRoleAssignment) -> ApprovalRoleAssignmentModel:
        return cls(
            user_id=dto.user_id,
            role_id=dto.role_id,
            target_unit_id=dto.target_organization_id,
            valid_from=dto.valid_from,
            valid_to=dto.valid_to,
        )
