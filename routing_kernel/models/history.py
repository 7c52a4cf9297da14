"""
Module: routing_kernel.models.history
Responsibility: ORM persistence for approval history.  Append-only.

Architecture position: Kernel > Models.  May import from db/base.py,
    domain/route.py (DTO conversion) and exceptions.py.

Invariants enforced:
    - Append-only: ORM listeners reject UPDATE and DELETE.
    - Valid action and skip-reason values (check constraints).

Failure modes:
    - ImmutableHistoryError on UPDATE/DELETE through the ORM.
    - ValueError from ``to_dto`` when a stored action or skip reason is not
      a known enum value (the selector wraps it as MalformedDataError).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from routing_kernel.db.base import Base
from routing_kernel.domain.route import Decision, DecisionAction, SkipReason
from routing_kernel.exceptions import ImmutableHistoryError


class ApprovalHistoryModel(Base):
    """One recorded decision on one step of one request."""

    __tablename__ = "approval_history"

    __table_args__ = (
        CheckConstraint(
            "action IN ('approve', 'reject', 'remand', 'skip')",
            name="ck_approval_history_action",
        ),
        CheckConstraint(
            "skip_reason IS NULL OR skip_reason IN ('vacant', 'same_person', 'not_required')",
            name="ck_approval_history_skip_reason",
        ),
        Index("ix_approval_history_request", "request_id", "step_order"),
    )

    request_id: Mapped[str] = mapped_column(String(64), nullable=False)
    step_order: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    approver_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approver_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    skip_reason: Mapped[str | None] = mapped_column(String(20), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ApprovalHistory request={self.request_id} "
            f"step={self.step_order} action={self.action}>"
        )

    def to_dto(self) -> Decision:
        return Decision(
            request_id=self.request_id,
            step_order=self.step_order,
            action=DecisionAction(self.action),
            approver_id=self.approver_id,
            skip_reason=SkipReason(self.skip_reason) if self.skip_reason else None,
            comment=self.comment,
            decided_at=self.decided_at,
            approver_name=self.approver_name,
            approver_email=self.approver_email,
        )

    @classmethod
    def from_dto(cls, dto: Decision) -> ApprovalHistoryModel:
        return cls(
            request_id=dto.request_id,
            step_order=dto.step_order,
            action=dto.action.value,
            approver_id=dto.approver_id,
            approver_name=dto.approver_name,
            approver_email=dto.approver_email,
            skip_reason=dto.skip_reason.value if dto.skip_reason else None,
            comment=dto.comment,
            decided_at=dto.decided_at,
        )


# =============================================================================
# ORM-Level Immutability (Append-Only)
# =============================================================================


@event.listens_for(ApprovalHistoryModel, "before_update")
def prevent_history_update(mapper, connection, target):
    """Prevent updates to recorded decisions."""
    raise ImmutableHistoryError(entry_id=str(target.id), operation="update")


@event.listens_for(ApprovalHistoryModel, "before_delete")
def prevent_history_delete(mapper, connection, target):
    """Prevent deletion of recorded decisions."""
    raise ImmutableHistoryError(entry_id=str(target.id), operation="delete")
