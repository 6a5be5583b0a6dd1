"""Workflow configuration and submission result models."""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from storyreel.core.enums import WorkflowIOType, WorkflowType


class WorkflowInput(BaseModel):
    """A named input slot of a workflow."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    type: WorkflowIOType
    required: bool = True
    default_value: Optional[Any] = None


class WorkflowOutput(BaseModel):
    """A named output slot of a workflow."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    type: WorkflowIOType


class WorkflowConfig(BaseModel):
    """
    Caller-supplied description of what to run and on which backend.

    Immutable once constructed. ``config`` is a backend-specific parameter
    bag that only the selected adapter interprets.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(..., min_length=1)
    name: str
    type: WorkflowType
    description: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    inputs: List[WorkflowInput] = Field(default_factory=list)
    outputs: List[WorkflowOutput] = Field(default_factory=list)

    def input_values(self) -> Dict[str, Any]:
        """Map input ids to their default values, skipping inputs without one."""
        return {
            item.id: item.default_value
            for item in self.inputs
            if item.default_value is not None
        }


class WorkflowResult(BaseModel):
    """
    Outcome of submitting a workflow.

    ``success`` means the job was accepted and dispatched, not that it
    finished. ``execution_time`` is the submission time in milliseconds.
    """

    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    execution_time: float = 0.0

    @property
    def job_id(self) -> Optional[str]:
        if self.result is None:
            return None
        return self.result.get("job_id")

    @classmethod
    def ok(cls, result: Dict[str, Any], execution_time: float) -> "WorkflowResult":
        return cls(success=True, result=result, execution_time=execution_time)

    @classmethod
    def failure(cls, error: str, execution_time: float = 0.0) -> "WorkflowResult":
        return cls(success=False, error=error, execution_time=execution_time)
