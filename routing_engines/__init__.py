"""
Module: routing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    kernel services and for request-progression code.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import routing_kernel/domain and routing_kernel/utils.
    MUST NOT import routing_kernel.services or routing_config.

Invariants enforced:
    - Purity: engines never read the clock or touch a collaborator.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from routing_engines import evaluate_conditions, summarize_route
"""

from routing_engines.conditions import (
    evaluate_condition,
    evaluate_conditions,
    strict_equals,
)
from routing_engines.progress import (
    RouteProgress,
    configuration_gaps,
    is_route_complete,
    is_route_rejected,
    next_pending_step,
    notification_target,
    route_fingerprint,
    summarize_route,
)
from routing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "RouteProgress",
    "compute_input_fingerprint",
    "configuration_gaps",
    "evaluate_condition",
    "evaluate_conditions",
    "is_route_complete",
    "is_route_rejected",
    "next_pending_step",
    "notification_target",
    "route_fingerprint",
    "strict_equals",
    "summarize_route",
    "traced_engine",
]
