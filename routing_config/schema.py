"""
Configuration Schema (``routing_config.schema``).

Frozen dataclasses for configuration artifacts that have no kernel
counterpart.  Resolver settings parse directly into the kernel's
``RoutingConfig``; step definitions parse into ``StepDefinition``.
"""

from __future__ import annotations

from dataclasses import dataclass

from routing_kernel.domain.route import StepDefinition


@dataclass(frozen=True)
class WorkflowDefinition:
    """A named workflow and its ordered approval steps."""

    workflow_id: str
    name: str
    steps: tuple[StepDefinition, ...]
    category: str = ""
    description: str = ""
    is_active: bool = True
