"""
routing_kernel.services.approver_locator -- Step definition to approving user.

Responsibility:
    Resolve one step definition to the concrete user who must act on it,
    including organizational escalation for vacant positions.

Architecture position:
    Kernel > Services.  May import from domain/.  Talks to the Directory
    only through the injected ``Directory`` protocol.

Resolution rules:
    - position: the position must exist.  Holders of that exact position
      id in the applicant's unit on ``as_of`` are searched first; if there
      are none, the search climbs to the parent unit with the SAME position
      id, up to the root.  The first holder in Directory order wins.
    - role: holders scoped to the applicant's unit first, then globally
      scoped holders.  First match wins.
    - specific_user: direct lookup, no escalation, no fallback.

Failure modes:
    - Returns None for a missing reference id, position, unit, or user
      (stale references fold into "no approver").
    - Escalation stops with None on a revisited unit (cycle) or after
      ``max_escalation_depth`` climbs, with a warning log.
    - Collaborator exceptions propagate unchanged.
"""

from __future__ import annotations

from datetime import date

from routing_kernel.domain.clock import Clock, SystemClock
from routing_kernel.domain.collaborators import Directory
from routing_kernel.domain.route import (
    ResolutionContext,
    StepDefinition,
    StepType,
    User,
)
from routing_kernel.domain.settings import RoutingConfig
from routing_kernel.logging_config import get_logger

logger = get_logger("services.approver_locator")


class ApproverLocator:
    """Finds the approving user for a step definition."""

    def __init__(
        self,
        directory: Directory,
        config: RoutingConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._directory = directory
        self._config = config or RoutingConfig()
        self._clock = clock or SystemClock()

    async def locate(
        self,
        step: StepDefinition,
        context: ResolutionContext,
    ) -> User | None:
        """Return the approver for ``step`` or None when nobody qualifies.

        Validity of assignments is checked on ``context.as_of``, or today
        per the injected clock when the context leaves it unset.
        """
        as_of = context.as_of or self._clock.today()
        applicant_organization_id = context.applicant_organization_id

        if not step.reference_id:
            logger.debug(
                "step_reference_missing",
                extra={"step_order": step.order, "step_type": step.step_type.value},
            )
            return None

        if step.step_type == StepType.POSITION:
            return await self._locate_by_position(
                step.reference_id, applicant_organization_id, as_of,
            )
        if step.step_type == StepType.ROLE:
            return await self._locate_by_role(
                step.reference_id, applicant_organization_id, as_of,
            )
        if step.step_type == StepType.SPECIFIC_USER:
            return await self._directory.get_user(step.reference_id)
        return None

    async def _locate_by_position(
        self,
        position_id: str,
        organization_id: str,
        as_of: date,
    ) -> User | None:
        position = await self._directory.get_position(position_id)
        if position is None:
            return None

        visited: set[str] = set()
        current: str | None = organization_id
        climbs = 0

        while current is not None:
            if current in visited:
                logger.warning(
                    "escalation_cycle_detected",
                    extra={
                        "position_id": position_id,
                        "start_organization_id": organization_id,
                        "organization_id": current,
                    },
                )
                return None
            visited.add(current)

            holders = await self._directory.get_users_by_organization_and_position(
                current, position.id, as_of,
            )
            if holders:
                if current != organization_id:
                    logger.info(
                        "position_escalated",
                        extra={
                            "position_id": position_id,
                            "start_organization_id": organization_id,
                            "resolved_organization_id": current,
                            "levels": climbs,
                        },
                    )
                return holders[0]

            if climbs >= self._config.max_escalation_depth:
                logger.warning(
                    "escalation_depth_exceeded",
                    extra={
                        "position_id": position_id,
                        "start_organization_id": organization_id,
                        "max_escalation_depth": self._config.max_escalation_depth,
                    },
                )
                return None

            unit = await self._directory.get_organization(current)
            current = unit.parent_id if unit is not None else None
            climbs += 1

        return None

    async def _locate_by_role(
        self,
        role_id: str,
        organization_id: str,
        as_of: date,
    ) -> User | None:
        scoped = await self._directory.get_users_by_approval_role(
            role_id, organization_id, as_of,
        )
        if scoped:
            return scoped[0]

        global_holders = await self._directory.get_users_by_approval_role(
            role_id, None, as_of,
        )
        return global_holders[0] if global_holders else None
