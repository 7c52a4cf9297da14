"""
Property-based tests for route resolution.

Random workflows over the shared test directory, random decision histories
and random current steps.  Properties checked:

- One resolved step per definition, ascending order
- Recorded decisions fully determine their step
- A pending step with an approver is always the request's current step
- Same-person skips only repeat an approver of an earlier approved step
- Resolving twice gives the same route
- Condition evaluation never raises on arbitrary content
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from routing_engines.conditions import evaluate_conditions
from routing_kernel.domain.route import (
    KNOWN_OPERATORS,
    Decision,
    DecisionAction,
    RequestSnapshot,
    ResolutionContext,
    SkipReason,
    StepCondition,
    StepStatus,
    StepType,
)
from routing_kernel.selectors.memory import InMemoryHistoryStore
from routing_kernel.services.route_resolver import RouteResolver
from tests.conftest import SATO, SUZUKI, TANAKA, YAMADA, build_directory, make_step

REFERENCES = {
    StepType.POSITION: ["pos-manager", "pos-director", "pos-president", "pos-ghost"],
    StepType.ROLE: ["role-accounting", "role-hr", "role-ghost"],
    StepType.SPECIFIC_USER: ["user-sato", "user-yamada", "user-ghost"],
}
APPROVERS = [SUZUKI, SATO, YAMADA]
BASE_TIME = datetime(2025, 4, 1, 9, 0, tzinfo=timezone.utc)

scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-10**6, max_value=10**6),
    st.floats(allow_nan=False, allow_infinity=False),
    st.decimals(allow_nan=False, allow_infinity=False, places=2),
    st.sampled_from([Decimal("NaN"), Decimal("sNaN"), float("nan")]),
    st.text(max_size=5),
)


@composite
def conditions(draw):
    operator = draw(st.one_of(st.sampled_from(sorted(KNOWN_OPERATORS)), st.text(max_size=4)))
    value = draw(st.one_of(scalars, st.lists(scalars, max_size=3)))
    return StepCondition(field=draw(st.sampled_from(["amount", "dept"])), operator=operator, value=value)


@composite
def step_definitions(draw):
    count = draw(st.integers(min_value=0, max_value=6))
    orders = draw(st.permutations(list(range(1, count + 1))))
    steps = []
    for order in orders:
        step_type = draw(st.sampled_from(list(StepType)))
        steps.append(make_step(
            order,
            step_type=step_type,
            reference_id=draw(st.sampled_from(REFERENCES[step_type])),
            skip_if_same_person=draw(st.booleans()),
            skip_if_vacant=draw(st.booleans()),
            conditions=tuple(draw(st.lists(conditions(), max_size=2))),
        ))
    return steps


@composite
def histories(draw, orders):
    decisions = []
    for order in orders:
        for _ in range(draw(st.integers(min_value=0, max_value=2))):
            approver = draw(st.sampled_from(APPROVERS))
            decisions.append(Decision(
                request_id="req-1",
                step_order=order,
                action=draw(st.sampled_from(list(DecisionAction))),
                approver_id=approver.id,
                approver_name=approver.name,
                approver_email=approver.email,
                decided_at=BASE_TIME + timedelta(minutes=draw(st.integers(0, 5))),
            ))
    return decisions


@composite
def scenarios(draw):
    steps = draw(step_definitions())
    decisions = draw(histories([s.order for s in steps]))
    current_step = draw(st.integers(min_value=1, max_value=max(len(steps), 1)))
    content = draw(st.dictionaries(st.sampled_from(["amount", "dept"]), scalars))
    return steps, decisions, current_step, content


def resolve(steps, decisions, current_step, content):
    resolver = RouteResolver(build_directory(), InMemoryHistoryStore(decisions))
    context = ResolutionContext(
        request=RequestSnapshot(request_id="req-1", current_step=current_step, content=content),
        applicant=TANAKA,
        applicant_organization_id="org-sales-1",
        steps=tuple(steps),
        as_of=date(2025, 4, 1),
    )
    return asyncio.run(resolver.resolve_route(context))


class TestRouteProperties:
    @given(scenarios())
    @settings(max_examples=150, deadline=None)
    def test_length_and_order(self, scenario):
        steps = scenario[0]
        route = resolve(*scenario)
        assert len(route) == len(steps)
        assert [s.order for s in route] == sorted(s.order for s in steps)

    @given(scenarios())
    @settings(max_examples=150, deadline=None)
    def test_decisions_are_authoritative(self, scenario):
        _, decisions, _, _ = scenario
        route = resolve(*scenario)

        latest: dict[int, Decision] = {}
        for decision in sorted(decisions, key=lambda d: d.decided_at):
            latest[decision.step_order] = decision

        expected_status = {
            DecisionAction.APPROVE: StepStatus.APPROVED,
            DecisionAction.REJECT: StepStatus.REJECTED,
            DecisionAction.REMAND: StepStatus.SKIPPED,
            DecisionAction.SKIP: StepStatus.SKIPPED,
        }
        for step in route:
            decision = latest.get(step.order)
            if decision is None:
                continue
            assert step.status == expected_status[decision.action]
            assert step.approver.id == decision.approver_id
            assert step.processed_at == decision.decided_at

    @given(scenarios())
    @settings(max_examples=150, deadline=None)
    def test_actionable_step_is_current(self, scenario):
        _, _, current_step, _ = scenario
        for step in resolve(*scenario):
            if step.status == StepStatus.PENDING and step.approver is not None:
                assert step.order == current_step
            if step.status == StepStatus.WAITING:
                assert step.order != current_step
                assert step.approver is not None

    @given(scenarios())
    @settings(max_examples=150, deadline=None)
    def test_same_person_skip_repeats_earlier_approver(self, scenario):
        route = resolve(*scenario)
        for index, step in enumerate(route):
            if step.skip_reason == SkipReason.SAME_PERSON and step.processed_at is None:
                earlier = {
                    s.approver.id for s in route[:index]
                    if s.status == StepStatus.APPROVED and s.approver is not None
                }
                assert step.approver.id in earlier

    @given(scenarios())
    @settings(max_examples=75, deadline=None)
    def test_resolution_is_idempotent(self, scenario):
        assert resolve(*scenario) == resolve(*scenario)


class TestConditionProperties:
    @given(
        st.lists(conditions(), max_size=4),
        st.dictionaries(st.sampled_from(["amount", "dept"]), scalars),
    )
    @settings(max_examples=300, deadline=None)
    def test_never_raises_and_is_boolean(self, condition_list, content):
        result = evaluate_conditions(conditions=tuple(condition_list), content=content)
        assert isinstance(result, bool)

    @given(st.text(max_size=6).filter(lambda op: op not in KNOWN_OPERATORS), scalars)
    @settings(max_examples=100, deadline=None)
    def test_unknown_operator_fails_open(self, operator, value):
        condition = StepCondition(field="amount", operator=operator, value=value)
        assert evaluate_conditions(conditions=(condition,), content={"amount": value})
