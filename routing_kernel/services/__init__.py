"""
Kernel services.

- ApproverLocator: step definition -> approving user (with escalation)
- RouteResolver: full route resolution against history and directory
"""

from routing_kernel.services.approver_locator import ApproverLocator
from routing_kernel.services.route_resolver import (
    RouteResolver,
    index_history,
    order_steps,
)

__all__ = [
    "ApproverLocator",
    "RouteResolver",
    "index_history",
    "order_steps",
]
