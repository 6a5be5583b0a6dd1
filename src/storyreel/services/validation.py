"""Structural validation of workflow configurations."""
from collections import Counter
from typing import List
from storyreel.core.exceptions import WorkflowValidationError
from storyreel.models.workflow import WorkflowConfig


def collect_config_errors(config: WorkflowConfig) -> List[str]:
    """Return every structural problem found in ``config``."""
    errors: List[str] = []

    if not config.name or not config.name.strip():
        errors.append("workflow name must not be blank")

    if not config.inputs:
        errors.append("workflow must declare at least one input")
    if not config.outputs:
        errors.append("workflow must declare at least one output")

    for label, items in (("input", config.inputs), ("output", config.outputs)):
        for position, item in enumerate(items, start=1):
            if not item.name or not item.name.strip():
                errors.append(f"{label} {position} name must not be blank")

        counts = Counter(item.id for item in items)
        for item_id, count in counts.items():
            if count > 1:
                errors.append(f"duplicate {label} id '{item_id}'")

    return errors


def validate_workflow_config(config: WorkflowConfig) -> None:
    """
    Validate a workflow configuration before dispatch.

    Args:
        config: Workflow configuration

    Raises:
        WorkflowValidationError: Listing all problems found
    """
    errors = collect_config_errors(config)
    if errors:
        raise WorkflowValidationError(errors)
