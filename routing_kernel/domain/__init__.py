"""
Pure domain layer.

Data transfer objects and collaborator interfaces with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (other than the injectable Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from routing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from routing_kernel.domain.collaborators import Directory, HistoryStore
from routing_kernel.domain.route import (
    KNOWN_OPERATORS,
    NUMERIC_OPERATORS,
    TERMINAL_STEP_STATUSES,
    ApprovalRoleAssignment,
    ApproverRef,
    ConditionOperator,
    Decision,
    DecisionAction,
    OrganizationUnit,
    Position,
    PositionAssignment,
    RequestSnapshot,
    ResolutionContext,
    ResolvedStep,
    SkipReason,
    StepCondition,
    StepDefinition,
    StepStatus,
    StepType,
    User,
)
from routing_kernel.domain.settings import DEFAULT_MAX_ESCALATION_DEPTH, RoutingConfig

__all__ = [
    "KNOWN_OPERATORS",
    "NUMERIC_OPERATORS",
    "TERMINAL_STEP_STATUSES",
    "DEFAULT_MAX_ESCALATION_DEPTH",
    "ApprovalRoleAssignment",
    "ApproverRef",
    "Clock",
    "ConditionOperator",
    "Decision",
    "DecisionAction",
    "DeterministicClock",
    "Directory",
    "HistoryStore",
    "OrganizationUnit",
    "Position",
    "PositionAssignment",
    "RequestSnapshot",
    "ResolutionContext",
    "ResolvedStep",
    "RoutingConfig",
    "SkipReason",
    "StepCondition",
    "StepDefinition",
    "StepStatus",
    "StepType",
    "SystemClock",
    "User",
]
