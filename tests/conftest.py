"""
Pytest fixtures for the routing kernel test suite.

Provides:
- Structured logging configuration and log capture
- An in-memory organizational directory shared by the resolver tests
- Factories for step definitions and resolution contexts

Directory used throughout (as of 2025-04-01):

    org-company (root)          sato: president
    +-- org-sales               suzuki: director AND manager (dual assignment)
        +-- org-sales-1         tanaka: staff (the usual applicant)
    org-legal (root)            nobody

    role-accounting: yamada (global), ito (scoped to org-legal)
    role-hr: expired assignment only
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO

import pytest

from routing_kernel.domain.clock import DeterministicClock
from routing_kernel.domain.route import (
    ApprovalRoleAssignment,
    OrganizationUnit,
    Position,
    PositionAssignment,
    RequestSnapshot,
    ResolutionContext,
    StepCondition,
    StepDefinition,
    StepType,
    User,
)
from routing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from routing_kernel.selectors.memory import InMemoryDirectory, InMemoryHistoryStore
from routing_kernel.services.route_resolver import RouteResolver

AS_OF = date(2025, 4, 1)

TANAKA = User(id="user-tanaka", name="Tanaka Taro", email="tanaka@example.com")
SUZUKI = User(id="user-suzuki", name="Suzuki Ichiro", email="suzuki@example.com")
SATO = User(id="user-sato", name="Sato Hanako", email="sato@example.com")
YAMADA = User(id="user-yamada", name="Yamada Jiro", email="yamada@example.com")
ITO = User(id="user-ito", name="Ito Saburo", email="ito@example.com")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture routing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, resolver):
            ...
            logs = captured_logs()
            assert any(r["message"] == "route_resolved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("routing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Directory fixtures
# =============================================================================


def build_directory() -> InMemoryDirectory:
    return InMemoryDirectory(
        users=[TANAKA, SUZUKI, SATO, YAMADA, ITO],
        organizations=[
            OrganizationUnit(id="org-company", parent_id=None, name="Head Office"),
            OrganizationUnit(id="org-sales", parent_id="org-company", name="Sales"),
            OrganizationUnit(id="org-sales-1", parent_id="org-sales", name="Sales 1"),
            OrganizationUnit(id="org-legal", parent_id=None, name="Legal"),
        ],
        positions=[
            Position(id="pos-president", name="President", level=1),
            Position(id="pos-director", name="Director", level=3),
            Position(id="pos-manager", name="Manager", level=4),
            Position(id="pos-staff", name="Staff", level=5),
        ],
        position_assignments=[
            PositionAssignment(
                user_id="user-tanaka", organization_id="org-sales-1",
                position_id="pos-staff", valid_from=date(2024, 1, 1), is_primary=True,
            ),
            PositionAssignment(
                user_id="user-suzuki", organization_id="org-sales",
                position_id="pos-director", valid_from=date(2024, 1, 1), is_primary=True,
            ),
            PositionAssignment(
                user_id="user-suzuki", organization_id="org-sales",
                position_id="pos-manager", valid_from=date(2024, 1, 1),
            ),
            PositionAssignment(
                user_id="user-sato", organization_id="org-company",
                position_id="pos-president", valid_from=date(2020, 1, 1), is_primary=True,
            ),
        ],
        role_assignments=[
            ApprovalRoleAssignment(
                user_id="user-yamada", role_id="role-accounting",
                valid_from=date(2024, 1, 1),
            ),
            ApprovalRoleAssignment(
                user_id="user-ito", role_id="role-accounting",
                valid_from=date(2024, 1, 1), target_organization_id="org-legal",
            ),
            ApprovalRoleAssignment(
                user_id="user-ito", role_id="role-hr",
                valid_from=date(2023, 1, 1), valid_to=date(2024, 12, 31),
            ),
        ],
    )


@pytest.fixture
def directory() -> InMemoryDirectory:
    return build_directory()


@pytest.fixture
def history() -> InMemoryHistoryStore:
    return InMemoryHistoryStore()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2025, 4, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def resolver(directory, history, clock) -> RouteResolver:
    return RouteResolver(directory, history, clock=clock)


# =============================================================================
# Factories
# =============================================================================


def make_step(
    order: int,
    step_type: StepType = StepType.POSITION,
    reference_id: str | None = "pos-manager",
    skip_if_same_person: bool = True,
    skip_if_vacant: bool = True,
    conditions: tuple[StepCondition, ...] = (),
    label: str | None = None,
) -> StepDefinition:
    return StepDefinition(
        order=order,
        step_type=step_type,
        reference_id=reference_id,
        skip_if_same_person=skip_if_same_person,
        skip_if_vacant=skip_if_vacant,
        conditions=conditions,
        label=label,
    )


@pytest.fixture
def make_context():
    """Factory for ResolutionContext with the usual applicant (tanaka)."""

    def _make(
        steps,
        current_step: int = 1,
        content: dict | None = None,
        request_id: str = "req-1",
        organization_id: str = "org-sales-1",
        as_of: date | None = AS_OF,
    ) -> ResolutionContext:
        return ResolutionContext(
            request=RequestSnapshot(
                request_id=request_id,
                current_step=current_step,
                content=content or {},
                workflow_id="wf-1",
            ),
            applicant=TANAKA,
            applicant_organization_id=organization_id,
            steps=tuple(steps),
            as_of=as_of,
        )

    return _make
