"""
routing_config -- resolver settings and workflow definitions from YAML.

Responsibility:
    Single entrypoint for runtime resolver settings
    (``get_routing_config()``) plus loaders and a validator for workflow
    step definitions.

Architecture position:
    Configuration layer.  Sits above ``routing_kernel``; the kernel MUST
    NEVER import from ``routing_config``.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every ``get_routing_config()`` call emits a ``ROUTING_CONFIG_TRACE``
    log entry with the source path and checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from routing_config.loader import (
    compute_checksum,
    load_routing_config,
    load_workflow,
    load_workflow_steps,
    load_yaml_file,
    parse_routing_config,
    parse_step_definition,
    parse_workflow,
)
from routing_config.schema import WorkflowDefinition
from routing_config.validator import ValidationResult, validate_step_definitions
from routing_kernel.domain.settings import RoutingConfig

_logger = logging.getLogger("routing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
SAMPLE_WORKFLOWS_DIR = Path(__file__).parent / "workflows"


def get_routing_config(path: Path | None = None) -> RoutingConfig:
    """Load resolver settings from ``path`` (packaged defaults when None)."""
    source = path or DEFAULT_CONFIG_PATH
    data = load_yaml_file(source)
    config = parse_routing_config(data)

    _logger.info(
        "ROUTING_CONFIG_TRACE",
        extra={
            "trace_type": "ROUTING_CONFIG_TRACE",
            "config_path": str(source),
            "checksum": compute_checksum(data),
            "max_escalation_depth": config.max_escalation_depth,
        },
    )
    return config


def load_validated_workflow(path: Path) -> WorkflowDefinition:
    """Load a workflow and refuse it when validation reports errors."""
    workflow = load_workflow(path)
    validation = validate_step_definitions(workflow.steps)
    if not validation.is_valid:
        raise ValueError(
            f"Workflow {workflow.workflow_id} failed validation:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning(
            "workflow_validation_warning",
            extra={"workflow_id": workflow.workflow_id, "warning": warning},
        )
    return workflow


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SAMPLE_WORKFLOWS_DIR",
    "RoutingConfig",
    "ValidationResult",
    "WorkflowDefinition",
    "compute_checksum",
    "get_routing_config",
    "load_routing_config",
    "load_validated_workflow",
    "load_workflow",
    "load_workflow_steps",
    "parse_routing_config",
    "parse_step_definition",
    "parse_workflow",
    "validate_step_definitions",
]
