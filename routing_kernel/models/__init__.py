"""ORM models for the routing kernel's directory and history adapters."""

from routing_kernel.models.directory import (
    ApprovalRoleAssignmentModel,
    OrganizationModel,
    PositionAssignmentModel,
    PositionModel,
    UserModel,
)
from routing_kernel.models.history import ApprovalHistoryModel

__all__ = [
    "ApprovalHistoryModel",
    "ApprovalRoleAssignmentModel",
    "OrganizationModel",
    "PositionAssignmentModel",
    "PositionModel",
    "UserModel",
]
