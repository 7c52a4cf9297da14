"""
routing_engines.conditions -- Pure condition-gate evaluation.

Responsibility:
    Decide whether a step's branch conditions hold against the submitted
    request content.  A step whose conditions fail is skipped as
    ``not_required`` by the resolver.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import routing_kernel/domain/ types.

Semantics:
    - AND across all conditions; an empty condition list passes.
    - ``eq`` / ``ne``: strict equality.  Booleans never equal numbers and
      strings never equal numbers (``True != 1``, ``"1" != 1``).
    - ``gt`` / ``gte`` / ``lt`` / ``lte``: both sides must be numeric
      (int, float, Decimal; bool excluded), otherwise the condition fails.
    - NaN (float or Decimal, quiet or signalling) compares unequal to
      everything and fails every ordering comparison.
    - ``in``: the comparison value must be a list or tuple; passes iff the
      field value is a strict member.
    - Unknown operators pass (fail-open).  ``routing_config.validator``
      reports them at definition time.
    - A field absent from the content compares as ``None``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from routing_engines.tracer import traced_engine
from routing_kernel.domain.route import ConditionOperator, StepCondition


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    if isinstance(value, Decimal):
        return value.is_nan()
    return isinstance(value, float) and math.isnan(value)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality that does not coerce across bool / number / string."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) and _is_number(right):
        if _is_nan(left) or _is_nan(right):
            return False
        return left == right
    if type(left) is not type(right) and not (
        isinstance(left, str) and isinstance(right, str)
    ):
        return False
    return left == right


def evaluate_condition(condition: StepCondition, content: Mapping[str, Any]) -> bool:
    """Evaluate a single condition against request content."""
    actual = content.get(condition.field)
    expected = condition.value
    op = condition.operator

    if op == ConditionOperator.EQ.value:
        return strict_equals(actual, expected)
    if op == ConditionOperator.NE.value:
        return not strict_equals(actual, expected)

    if op in (
        ConditionOperator.GT.value,
        ConditionOperator.GTE.value,
        ConditionOperator.LT.value,
        ConditionOperator.LTE.value,
    ):
        if not (_is_number(actual) and _is_number(expected)):
            return False
        if _is_nan(actual) or _is_nan(expected):
            return False
        if op == ConditionOperator.GT.value:
            return actual > expected
        if op == ConditionOperator.GTE.value:
            return actual >= expected
        if op == ConditionOperator.LT.value:
            return actual < expected
        return actual <= expected

    if op == ConditionOperator.IN.value:
        if not isinstance(expected, (list, tuple)):
            return False
        return any(strict_equals(actual, candidate) for candidate in expected)

    # Unknown operator: fail-open
    return True


@traced_engine("conditions", "1.0", fingerprint_fields=("conditions", "content"))
def evaluate_conditions(
    conditions: Iterable[StepCondition],
    content: Mapping[str, Any],
) -> bool:
    """True iff every condition holds (AND semantics)."""
    return all(evaluate_condition(c, content) for c in conditions)
