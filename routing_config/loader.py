"""
Configuration Loader (``routing_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into typed, frozen objects: the
resolver's ``RoutingConfig`` and workflow step definitions.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Produces kernel domain types;
the kernel never imports from this package.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Unknown keys in the resolver settings are rejected.
* Condition operators are NOT checked here; an unknown operator is kept
  verbatim and reported by ``routing_config.validator``.
* ``compute_checksum`` produces a deterministic SHA-256 for change
  detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid step type, order or flag -> ``InvalidStepDefinitionError``.
* Unknown resolver setting keys  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from routing_config.schema import WorkflowDefinition
from routing_kernel.domain.route import StepCondition, StepDefinition, StepType
from routing_kernel.domain.settings import DEFAULT_MAX_ESCALATION_DEPTH, RoutingConfig
from routing_kernel.exceptions import InvalidStepDefinitionError
from routing_kernel.utils.hashing import hash_payload

_SETTINGS_KEYS = frozenset({"max_escalation_depth", "comments"})
_COMMENT_KEYS = {
    "not_required": "not_required_comment",
    "vacant": "vacant_comment",
    "configuration_gap": "configuration_gap_comment",
    "same_person": "same_person_comment",
}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a parsed YAML document."""
    return hash_payload(data)


# =========================================================================
# Resolver settings
# =========================================================================


def parse_routing_config(data: dict[str, Any]) -> RoutingConfig:
    """Parse resolver settings. Missing keys take the kernel defaults."""
    unknown = set(data) - _SETTINGS_KEYS
    if unknown:
        raise ValueError(f"Unknown routing config keys: {sorted(unknown)}")

    kwargs: dict[str, Any] = {
        "max_escalation_depth": int(
            data.get("max_escalation_depth", DEFAULT_MAX_ESCALATION_DEPTH)
        ),
    }

    comments = data.get("comments") or {}
    unknown_comments = set(comments) - set(_COMMENT_KEYS)
    if unknown_comments:
        raise ValueError(f"Unknown comment keys: {sorted(unknown_comments)}")
    for key, attr in _COMMENT_KEYS.items():
        if key in comments:
            kwargs[attr] = str(comments[key])

    return RoutingConfig(**kwargs)


def load_routing_config(path: Path) -> RoutingConfig:
    return parse_routing_config(load_yaml_file(path))


# =========================================================================
# Workflow step definitions
# =========================================================================


def parse_condition(data: dict[str, Any]) -> StepCondition:
    """Parse a StepCondition. List values are frozen into tuples."""
    value = data["value"]
    if isinstance(value, list):
        value = tuple(value)
    return StepCondition(
        field=str(data["field"]),
        operator=str(data["operator"]),
        value=value,
    )


def _step_flag(data: dict[str, Any], key: str, order: int) -> bool:
    value = data.get(key, True)
    if not isinstance(value, bool):
        raise InvalidStepDefinitionError(
            order, f"{key} must be true or false, got {value!r}"
        )
    return value


def parse_step_definition(data: dict[str, Any]) -> StepDefinition:
    """
    Parse a StepDefinition from a dict.

    Required keys: ``order``, ``type``.  ``reference_id`` may be omitted
    (the validator reports it).
    """
    order = data["order"]
    if not isinstance(order, int) or isinstance(order, bool):
        raise InvalidStepDefinitionError(None, f"order must be an integer, got {order!r}")

    try:
        step_type = StepType(data["type"])
    except ValueError:
        raise InvalidStepDefinitionError(
            order, f"unknown step type {data['type']!r}"
        ) from None

    reference_id = data.get("reference_id")
    return StepDefinition(
        order=order,
        step_type=step_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        required=_step_flag(data, "required", order),
        skip_if_same_person=_step_flag(data, "skip_if_same_person", order),
        skip_if_vacant=_step_flag(data, "skip_if_vacant", order),
        conditions=tuple(parse_condition(c) for c in data.get("conditions") or ()),
        label=data.get("label"),
    )


def parse_workflow(data: dict[str, Any]) -> WorkflowDefinition:
    steps = tuple(
        sorted(
            (parse_step_definition(s) for s in data.get("steps") or ()),
            key=lambda s: s.order,
        )
    )
    return WorkflowDefinition(
        workflow_id=str(data["workflow_id"]),
        name=str(data["name"]),
        steps=steps,
        category=str(data.get("category", "")),
        description=str(data.get("description", "")),
        is_active=bool(data.get("is_active", True)),
    )


def load_workflow(path: Path) -> WorkflowDefinition:
    return parse_workflow(load_yaml_file(path))


def load_workflow_steps(path: Path) -> tuple[StepDefinition, ...]:
    """Order-sorted step definitions of the workflow in ``path``."""
    return load_workflow(path).steps
