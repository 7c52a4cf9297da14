"""
routing_kernel.services.route_resolver -- Approval route resolution.

Responsibility:
    Compute the fully resolved state of every step of a request's approval
    route from the workflow's step definitions, the request content, the
    organizational directory, and the recorded decision history.  The
    route is never persisted; it is recomputed on every call.

Architecture position:
    Kernel > Services.  May import from domain/ and routing_engines.
    Collaborators are constructor-injected protocols.

Algorithm (per step, ascending order, strictly sequential):
    1. History: a recorded decision fully determines the step
       (approve -> approved, reject -> rejected, anything else -> skipped
       with the recorded reason).  The directory is not consulted.
    2. Conditions fail -> skipped / not_required.  No approver lookup.
    3. Locate the approver.
    4. None found -> skipped / vacant when skip_if_vacant, otherwise
       pending with no approver (configuration gap, reported not raised).
    5. skip_if_same_person and the approver already approved an earlier
       step of this pass -> skipped / same_person.
    6. pending if the step is the request's current step, else waiting.

Invariants enforced:
    - Length preservation: one ResolvedStep per definition, same order.
    - Replay stability: a step with a decision is independent of
      directory state.
    - Same-person skip only sees approvers of strictly earlier steps of the
      same pass that resolved to ``approved``.
    - Re-entrancy: no state is kept between calls; the only per-call state
      is the approved-approver accumulator.

Failure modes:
    - DuplicateStepOrderError when two definitions share an order.
    - Collaborator exceptions propagate; no writes are made, so a retry
      with the same inputs is safe.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Sequence

from routing_engines.conditions import evaluate_conditions
from routing_engines.progress import (
    RouteProgress,
    is_route_complete,
    next_pending_step,
    summarize_route,
)
from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.collaborators import Directory, HistoryStore
from routing_kernel.domain.route import (
    ApproverRef,
    Decision,
    DecisionAction,
    ResolutionContext,
    ResolvedStep,
    SkipReason,
    StepDefinition,
    StepStatus,
)
from routing_kernel.domain.settings import RoutingConfig
from routing_kernel.exceptions import DuplicateStepOrderError
from routing_kernel.logging_config import LogContext, get_logger
from routing_kernel.services.approver_locator import ApproverLocator

logger = get_logger("services.route_resolver")


def index_history(decisions: Sequence[Decision]) -> dict[int, Decision]:
    """Map step order to its authoritative decision.

    When several decisions exist for one step the latest ``decided_at``
    wins; decisions without a timestamp sort first, and ties keep the
    later position in ``decisions``.
    """
    indexed = sorted(
        enumerate(decisions),
        key=lambda pair: (
            pair[1].decided_at is not None,
            pair[1].decided_at.timestamp() if pair[1].decided_at is not None else 0.0,
            pair[0],
        ),
    )
    by_step: dict[int, Decision] = {}
    for _, decision in indexed:
        by_step[decision.step_order] = decision
    return by_step


def order_steps(steps: Sequence[StepDefinition]) -> list[StepDefinition]:
    """Sort definitions by order, rejecting duplicates."""
    ordered = sorted(steps, key=lambda s: s.order)
    seen: set[int] = set()
    for step in ordered:
        if step.order in seen:
            raise DuplicateStepOrderError(step.order)
        seen.add(step.order)
    return ordered


def _from_decision(step: StepDefinition, decision: Decision) -> ResolvedStep:
    if decision.action == DecisionAction.APPROVE:
        status = StepStatus.APPROVED
    elif decision.action == DecisionAction.REJECT:
        status = StepStatus.REJECTED
    else:
        status = StepStatus.SKIPPED

    return ResolvedStep(
        order=step.order,
        step_type=step.step_type,
        label=step.label,
        approver=ApproverRef.from_decision(decision),
        status=status,
        skip_reason=decision.skip_reason,
        comment=decision.comment,
        processed_at=decision.decided_at,
    )


class RouteResolver:
    """Resolves the approval route of a request.

    Contract:
        ``resolve_route`` is a pure read: it performs no writes and keeps
        no state across calls, so concurrent calls for different requests
        are safe.  Steps within one call are resolved one at a time.
    """

    def __init__(
        self,
        directory: Directory,
        history: HistoryStore,
        config: RoutingConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._history = history
        self._config = config or RoutingConfig()
        self._clock = clock or SystemClock()
        self._locator = ApproverLocator(directory, self._config, self._clock)

    async def resolve_route(self, context: ResolutionContext) -> list[ResolvedStep]:
        """Resolve every step of the route, in order."""
        if context.as_of is None:
            context = dataclasses.replace(context, as_of=self._clock.today())

        request = context.request
        with LogContext.bind(
            request_id=request.request_id,
            workflow_id=request.workflow_id,
        ):
            t0 = time.monotonic()
            steps = order_steps(context.steps)
            decisions = await self._history.get_approval_history(request.request_id)
            history_by_step = index_history(decisions)

            approved_approver_ids: list[str] = []
            resolved: list[ResolvedStep] = []

            for step in steps:
                result = await self._resolve_step(
                    step,
                    context,
                    approved_approver_ids,
                    history_by_step.get(step.order),
                )
                resolved.append(result)

                if result.status == StepStatus.APPROVED and result.approver is not None:
                    approved_approver_ids.append(result.approver.id)

            logger.info(
                "route_resolved",
                extra={
                    "step_count": len(resolved),
                    "history_count": len(decisions),
                    "current_step": request.current_step,
                    "as_of": context.as_of,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return resolved

    async def _resolve_step(
        self,
        step: StepDefinition,
        context: ResolutionContext,
        approved_approver_ids: list[str],
        decision: Decision | None,
    ) -> ResolvedStep:
        if decision is not None:
            return _from_decision(step, decision)

        if step.conditions and not evaluate_conditions(
            conditions=step.conditions,
            content=context.request.content,
        ):
            return ResolvedStep(
                order=step.order,
                step_type=step.step_type,
                label=step.label,
                status=StepStatus.SKIPPED,
                skip_reason=SkipReason.NOT_REQUIRED,
                comment=self._config.not_required_comment,
            )

        approver = await self._locator.locate(step, context)

        if approver is None:
            if step.skip_if_vacant:
                return ResolvedStep(
                    order=step.order,
                    step_type=step.step_type,
                    label=step.label,
                    status=StepStatus.SKIPPED,
                    skip_reason=SkipReason.VACANT,
                    comment=self._config.vacant_comment,
                )
            logger.warning(
                "configuration_gap",
                extra={
                    "step_order": step.order,
                    "step_type": step.step_type.value,
                    "reference_id": step.reference_id,
                },
            )
            return ResolvedStep(
                order=step.order,
                step_type=step.step_type,
                label=step.label,
                status=StepStatus.PENDING,
                comment=self._config.configuration_gap_comment,
            )

        ref = ApproverRef.from_user(approver)

        if step.skip_if_same_person and approver.id in approved_approver_ids:
            return ResolvedStep(
                order=step.order,
                step_type=step.step_type,
                label=step.label,
                approver=ref,
                status=StepStatus.SKIPPED,
                skip_reason=SkipReason.SAME_PERSON,
                comment=self._config.same_person_comment,
            )

        status = (
            StepStatus.PENDING
            if step.order == context.request.current_step
            else StepStatus.WAITING
        )
        return ResolvedStep(
            order=step.order,
            step_type=step.step_type,
            label=step.label,
            approver=ref,
            status=status,
        )

    # ------------------------------------------------------------------
    # Convenience queries over a fresh resolution
    # ------------------------------------------------------------------

    async def next_pending_step(self, context: ResolutionContext) -> ResolvedStep | None:
        return next_pending_step(await self.resolve_route(context))

    async def is_route_completed(self, context: ResolutionContext) -> bool:
        """True when every step is approved or skipped."""
        return is_route_complete(await self.resolve_route(context))

    async def summarize(self, context: ResolutionContext) -> RouteProgress:
        return summarize_route(route=await self.resolve_route(context))
