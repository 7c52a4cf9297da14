"""
routing_engines.progress -- Pure summaries over a resolved route.

Responsibility:
    Answer the questions request-progression and notification code ask of
    a resolved route: which step is actionable next, who should be
    notified, whether the request is complete or rejected, and which steps
    are blocked by a configuration gap.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import routing_kernel/domain/ types and routing_kernel/utils.

Invariants enforced:
    - A route is complete iff every step is approved or skipped.  An empty
      route is complete.
    - ``route_fingerprint`` is deterministic: identical routes always hash
      identically, so a caller can detect that nothing changed between
      two resolutions.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from routing_engines.tracer import traced_engine
from routing_kernel.domain.route import (
    ApproverRef,
    ResolvedStep,
    StepStatus,
)
from routing_kernel.utils.hashing import hash_payload

_COMPLETE_STATUSES = frozenset({StepStatus.APPROVED, StepStatus.SKIPPED})


@dataclass(frozen=True)
class RouteProgress:
    """Aggregate progress of one resolved route."""

    total_steps: int
    approved: int
    skipped: int
    rejected: int
    pending: int
    waiting: int
    next_step_order: int | None
    configuration_gap_orders: tuple[int, ...]
    is_complete: bool
    is_rejected: bool
    fingerprint: str

    @property
    def completed_steps(self) -> int:
        return self.approved + self.skipped


def next_pending_step(route: Sequence[ResolvedStep]) -> ResolvedStep | None:
    """First step with status ``pending``, or None."""
    for step in route:
        if step.status == StepStatus.PENDING:
            return step
    return None


def notification_target(route: Sequence[ResolvedStep]) -> ApproverRef | None:
    """Approver of the next pending step.

    None when nothing is pending or when the pending step has no approver
    (a configuration gap is for operators, not approvers).
    """
    step = next_pending_step(route)
    if step is None:
        return None
    return step.approver


def is_route_complete(route: Sequence[ResolvedStep]) -> bool:
    return all(step.status in _COMPLETE_STATUSES for step in route)


def is_route_rejected(route: Sequence[ResolvedStep]) -> bool:
    return any(step.status == StepStatus.REJECTED for step in route)


def configuration_gaps(route: Sequence[ResolvedStep]) -> tuple[ResolvedStep, ...]:
    """Pending steps with no approver, in route order."""
    return tuple(step for step in route if step.is_configuration_gap)


def route_fingerprint(route: Sequence[ResolvedStep]) -> str:
    """Deterministic SHA-256 over every field of every resolved step."""
    return hash_payload([
        {
            "order": step.order,
            "step_type": step.step_type,
            "label": step.label,
            "status": step.status,
            "approver": (
                None if step.approver is None
                else [step.approver.id, step.approver.name, step.approver.email]
            ),
            "skip_reason": step.skip_reason,
            "comment": step.comment,
            "processed_at": step.processed_at,
        }
        for step in route
    ])


@traced_engine("route_progress", "1.0", fingerprint_fields=("route",))
def summarize_route(route: Sequence[ResolvedStep]) -> RouteProgress:
    """Count steps per status and derive next step / completion."""
    counts = {status: 0 for status in StepStatus}
    for step in route:
        counts[step.status] += 1

    nxt = next_pending_step(route)
    return RouteProgress(
        total_steps=len(route),
        approved=counts[StepStatus.APPROVED],
        skipped=counts[StepStatus.SKIPPED],
        rejected=counts[StepStatus.REJECTED],
        pending=counts[StepStatus.PENDING],
        waiting=counts[StepStatus.WAITING],
        next_step_order=nxt.order if nxt is not None else None,
        configuration_gap_orders=tuple(s.order for s in configuration_gaps(route)),
        is_complete=is_route_complete(route),
        is_rejected=is_route_rejected(route),
        fingerprint=route_fingerprint(route),
    )
