"""
Routing Kernel

Approval-route resolution for multi-step request workflows:
- Ordered step definitions bound to positions, roles, or specific users
- Organizational escalation for vacant positions
- Condition gates on request content
- Replay-stable reconciliation against append-only decision history
"""

__version__ = "0.1.0"
