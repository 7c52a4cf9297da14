"""
Typed Exception Hierarchy for the Routing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the route resolver must tell a broken workflow definition apart
from an unreachable directory without parsing messages.  Every error has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (not just a message string)

Example:
    try:
        route = await resolver.resolve_route(context)
    except CollaboratorUnavailableError as e:
        api_response(code=e.code, collaborator=e.collaborator)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RoutingKernelError (base)
    |
    +-- RouteDefinitionError
    |   +-- DuplicateStepOrderError
    |   +-- InvalidStepDefinitionError
    |
    +-- CollaboratorError
    |   +-- CollaboratorUnavailableError
    |   +-- MalformedDataError
    |
    +-- ImmutabilityError
        +-- ImmutableHistoryError

===============================================================================
WHAT IS NOT AN EXCEPTION
===============================================================================

A step with no resolvable approver (a configuration gap) is NOT raised.  It
is reported as a ``pending`` ResolvedStep with no approver and an
explanatory comment.  Likewise a position, organization unit, or user that
no longer exists is folded into "no approver found".  Only collaborator
faults and malformed definitions abort a resolution.
"""


class RoutingKernelError(Exception):
    """
    Base exception for all routing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ROUTING_KERNEL_ERROR"


# Route definition exceptions


class RouteDefinitionError(RoutingKernelError):
    """Base exception for malformed workflow step definitions."""

    code: str = "ROUTE_DEFINITION_ERROR"


class DuplicateStepOrderError(RouteDefinitionError):
    """Two step definitions of the same workflow share an order."""

    code: str = "DUPLICATE_STEP_ORDER"

    def __init__(self, order: int):
        self.order = order
        super().__init__(f"Duplicate step order in workflow: {order}")


class InvalidStepDefinitionError(RouteDefinitionError):
    """A step definition cannot be parsed into a StepDefinition."""

    code: str = "INVALID_STEP_DEFINITION"

    def __init__(self, order: int | None, reason: str):
        self.order = order
        self.reason = reason
        super().__init__(f"Invalid step definition (order={order}): {reason}")


# Collaborator exceptions


class CollaboratorError(RoutingKernelError):
    """Base exception for Directory / History Store faults."""

    code: str = "COLLABORATOR_ERROR"


class CollaboratorUnavailableError(CollaboratorError):
    """
    A collaborator could not be reached.

    Propagated to the caller, aborting resolution for the request.  The
    resolver performs no writes, so retrying with the same inputs is safe.
    """

    code: str = "COLLABORATOR_UNAVAILABLE"

    def __init__(self, collaborator: str, operation: str, reason: str):
        self.collaborator = collaborator
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"{collaborator} unavailable during {operation}: {reason}"
        )


class MalformedDataError(CollaboratorError):
    """A collaborator returned data that cannot be converted to domain types."""

    code: str = "MALFORMED_DATA"

    def __init__(self, collaborator: str, entity_type: str, entity_id: str, reason: str):
        self.collaborator = collaborator
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Malformed {entity_type} {entity_id} from {collaborator}: {reason}"
        )


# Immutability exceptions


class ImmutabilityError(RoutingKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutableHistoryError(ImmutabilityError):
    """
    Attempted to modify or delete a recorded decision.

    Approval history is append-only.  A mistaken decision is corrected by
    recording a newer decision for the same step, never by editing the old one.
    """

    code: str = "IMMUTABLE_HISTORY"

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} approval history entry {entry_id}: history is append-only"
        )
