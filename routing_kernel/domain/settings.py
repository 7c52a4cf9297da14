"""
Resolver settings (``routing_kernel.domain.settings``).

Frozen settings consumed by the route resolver and approver locator.
Built by ``routing_config`` from YAML; the kernel never reads
configuration files itself.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_ESCALATION_DEPTH = 16


@dataclass(frozen=True)
class RoutingConfig:
    """Settings for one resolver instance.

    ``max_escalation_depth`` bounds how many parent units a vacant position
    lookup may climb.  The comment fields are written onto resolved steps.
    """

    max_escalation_depth: int = DEFAULT_MAX_ESCALATION_DEPTH
    not_required_comment: str = "Skipped: step conditions not met"
    vacant_comment: str = "Skipped: no approver holds this step"
    configuration_gap_comment: str = "No approver is configured for this step"
    same_person_comment: str = "Skipped: approver already approved an earlier step"

    def __post_init__(self) -> None:
        if self.max_escalation_depth < 0:
            raise ValueError(
                f"max_escalation_depth must be >= 0, got {self.max_escalation_depth}"
            )
