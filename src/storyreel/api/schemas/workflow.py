"""Pydantic schemas for workflow and job API."""
from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from storyreel.core.enums import JobStatus, WorkflowType


class WorkflowResultResponse(BaseModel):
    """Schema for a workflow submission outcome."""

    success: bool
    job_id: Optional[str] = Field(None, description="Id to poll, present on success")
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    execution_time: float = Field(..., description="Submission time in milliseconds")

    model_config = {"from_attributes": True}


class JobStatusResponse(BaseModel):
    """Schema for job status response."""

    id: str
    workflow_id: str
    workflow_type: WorkflowType
    status: JobStatus
    progress: Optional[int] = Field(None, ge=0, le=100)
    message: str
    created_at: datetime
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None

    model_config = {"from_attributes": True}


class JobCancelResponse(BaseModel):
    """Schema for job cancellation response."""

    job_id: str
    status: JobStatus
    message: str

    model_config = {"from_attributes": True}
