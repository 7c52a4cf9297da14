"""
Configuration Validator (``routing_config.validator``).

Responsibility
--------------
Validates workflow step definitions at authoring time, before any request
routes against them.

Architecture position
---------------------
**Config layer** -- build-time validation.  The resolver itself never
rejects a definition for these reasons; it resolves whatever it is given.

Invariants enforced
-------------------
* Step orders are unique and contiguous starting at 1 (error).
* Every step has a reference id (error).
* Unknown condition operators are reported (warning): the evaluator
  treats them as satisfied, which silently admits the step.
* ``in`` with a non-list value and numeric operators with a non-numeric
  value can never pass (warning).

Failure modes
-------------
* ``ValidationResult.errors`` non-empty -> the workflow must not be used.
* ``ValidationResult.warnings`` -> usable, but should be reviewed.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from routing_kernel.domain.route import (
    KNOWN_OPERATORS,
    NUMERIC_OPERATORS,
    ConditionOperator,
    StepDefinition,
)


@dataclass
class ValidationResult:
    """
    Result of step definition validation.

    ``is_valid`` is True only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_step_definitions(steps: Sequence[StepDefinition]) -> ValidationResult:
    """Validate one workflow's step definitions."""
    result = ValidationResult()
    if not steps:
        result.add_warning("Workflow has no steps; every request completes immediately")
        return result

    _validate_orders(steps, result)
    for step in steps:
        _validate_reference(step, result)
        _validate_conditions(step, result)
    return result


def _validate_orders(steps: Sequence[StepDefinition], result: ValidationResult) -> None:
    counts = Counter(s.order for s in steps)
    for order, count in sorted(counts.items()):
        if count > 1:
            result.add_error(f"Step order {order} is used by {count} steps")

    expected = list(range(1, len(counts) + 1))
    if sorted(counts) != expected:
        result.add_error(
            f"Step orders must be contiguous from 1: got {sorted(counts)}"
        )


def _validate_reference(step: StepDefinition, result: ValidationResult) -> None:
    if not step.reference_id:
        result.add_error(
            f"Step {step.order} ({step.step_type.value}) has no reference id"
        )


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _validate_conditions(step: StepDefinition, result: ValidationResult) -> None:
    for condition in step.conditions:
        where = f"Step {step.order} condition on '{condition.field}'"
        if condition.operator not in KNOWN_OPERATORS:
            result.add_warning(
                f"{where}: unknown operator '{condition.operator}' always passes"
            )
        elif condition.operator == ConditionOperator.IN.value:
            if not isinstance(condition.value, (list, tuple)):
                result.add_warning(f"{where}: 'in' needs a list value and never passes")
        elif condition.operator in NUMERIC_OPERATORS:
            if not _is_number(condition.value):
                result.add_warning(
                    f"{where}: '{condition.operator}' needs a numeric value and never passes"
                )
