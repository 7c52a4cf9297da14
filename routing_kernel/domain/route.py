"""
Approval route domain types (``routing_kernel.domain.route``).

Responsibility
--------------
Pure value objects for approval-route resolution: workflow step
definitions and their condition gates, organizational directory facts,
recorded decisions, and the resolved step produced for every step on
every call.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Step definitions are immutable once a request routes against them.
* Decisions are append-only records; a resolved step backed by a
  decision never changes with directory state.
* ``ResolvedStep`` is ephemeral and never persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

ConditionValue = Union[str, int, float, tuple[str, ...], list[str]]


# =========================================================================
# Enumerations
# =========================================================================


class StepType(str, Enum):
    """What a step definition's reference id points at."""

    POSITION = "position"
    ROLE = "role"
    SPECIFIC_USER = "specific_user"


class ConditionOperator(str, Enum):
    """Operators understood by the condition evaluator."""

    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"


NUMERIC_OPERATORS: frozenset[str] = frozenset({
    ConditionOperator.GT.value,
    ConditionOperator.GTE.value,
    ConditionOperator.LT.value,
    ConditionOperator.LTE.value,
})

KNOWN_OPERATORS: frozenset[str] = frozenset(op.value for op in ConditionOperator)


class DecisionAction(str, Enum):
    """Actions recorded in approval history."""

    APPROVE = "approve"
    REJECT = "reject"
    REMAND = "remand"
    SKIP = "skip"


class SkipReason(str, Enum):
    """Why a step was bypassed."""

    VACANT = "vacant"
    SAME_PERSON = "same_person"
    NOT_REQUIRED = "not_required"


class StepStatus(str, Enum):
    """Resolved state of a single step."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"
    WAITING = "waiting"


TERMINAL_STEP_STATUSES: frozenset[StepStatus] = frozenset({
    StepStatus.APPROVED,
    StepStatus.REJECTED,
    StepStatus.SKIPPED,
})


# =========================================================================
# Workflow Definition Types
# =========================================================================


@dataclass(frozen=True)
class StepCondition:
    """A branch rule evaluated against the request content.

    ``operator`` is kept as the raw string so that an operator outside
    ``ConditionOperator`` survives parsing and reaches the evaluator.
    """

    field: str
    operator: str
    value: ConditionValue


@dataclass(frozen=True)
class StepDefinition:
    """One link in a workflow's approval chain.

    ``reference_id`` is a position id, role id, or user id depending on
    ``step_type``.
    """

    order: int
    step_type: StepType
    reference_id: str | None = None
    required: bool = True
    skip_if_same_person: bool = True
    skip_if_vacant: bool = True
    conditions: tuple[StepCondition, ...] = ()
    label: str | None = None


# =========================================================================
# Directory Types
# =========================================================================


@dataclass(frozen=True)
class OrganizationUnit:
    """A node in the organization tree. ``parent_id`` None marks the root."""

    id: str
    parent_id: str | None = None
    name: str = ""
    code: str = ""


@dataclass(frozen=True)
class Position:
    """A position level (1 = highest)."""

    id: str
    name: str = ""
    level: int = 1


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str = ""
    is_active: bool = True


def _valid_on(valid_from: date, valid_to: date | None, as_of: date) -> bool:
    if valid_from > as_of:
        return False
    return valid_to is None or as_of <= valid_to


@dataclass(frozen=True)
class PositionAssignment:
    """A user holding a position in an organization unit over a date range."""

    user_id: str
    organization_id: str
    position_id: str
    valid_from: date
    valid_to: date | None = None
    is_primary: bool = False

    def is_valid_on(self, as_of: date) -> bool:
        """Both ends of the range are inclusive; ``valid_to`` None is open-ended."""
        return _valid_on(self.valid_from, self.valid_to, as_of)


@dataclass(frozen=True)
class ApprovalRoleAssignment:
    """A user holding an approval role, scoped to one unit or globally."""

    user_id: str
    role_id: str
    valid_from: date
    valid_to: date | None = None
    target_organization_id: str | None = None

    @property
    def is_global(self) -> bool:
        return self.target_organization_id is None

    def is_valid_on(self, as_of: date) -> bool:
        return _valid_on(self.valid_from, self.valid_to, as_of)


# =========================================================================
# History Types
# =========================================================================


@dataclass(frozen=True)
class Decision:
    """A recorded action on one step of one request. Immutable.

    ``approver_name`` / ``approver_email`` are a snapshot taken when the
    decision was recorded, so replaying history never needs the directory.
    """

    request_id: str
    step_order: int
    action: DecisionAction
    approver_id: str | None = None
    skip_reason: SkipReason | None = None
    comment: str | None = None
    decided_at: datetime | None = None
    approver_name: str | None = None
    approver_email: str | None = None


# =========================================================================
# Resolution Input / Output
# =========================================================================


@dataclass(frozen=True)
class RequestSnapshot:
    """The request as seen by the resolver.

    ``current_step`` is 0 before submission.
    """

    request_id: str
    current_step: int
    content: Mapping[str, Any] = field(default_factory=dict)
    workflow_id: str | None = None


@dataclass(frozen=True)
class ResolutionContext:
    """Everything the caller supplies for one resolution pass.

    ``as_of`` None means "today" according to the resolver's clock.
    """

    request: RequestSnapshot
    applicant: User
    applicant_organization_id: str
    steps: tuple[StepDefinition, ...]
    as_of: date | None = None


@dataclass(frozen=True)
class ApproverRef:
    """Identity shown on a resolved step and used for notification."""

    id: str
    name: str | None = None
    email: str | None = None

    @classmethod
    def from_user(cls, user: User) -> ApproverRef:
        return cls(id=user.id, name=user.name, email=user.email)

    @classmethod
    def from_decision(cls, decision: Decision) -> ApproverRef | None:
        if decision.approver_id is None:
            return None
        return cls(
            id=decision.approver_id,
            name=decision.approver_name,
            email=decision.approver_email,
        )


@dataclass(frozen=True)
class ResolvedStep:
    """Fully resolved state of one step. Produced and discarded per call."""

    order: int
    step_type: StepType
    status: StepStatus
    label: str | None = None
    approver: ApproverRef | None = None
    skip_reason: SkipReason | None = None
    comment: str | None = None
    processed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STEP_STATUSES

    @property
    def is_configuration_gap(self) -> bool:
        """Pending with nobody to act: needs manual remediation."""
        return self.status == StepStatus.PENDING and self.approver is None
