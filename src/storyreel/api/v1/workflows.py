"""Workflow execution and job API endpoints."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from storyreel.api.deps import get_workflow_manager
from storyreel.api.schemas.response import StandardResponse, ResponseCodes, error_detail
from storyreel.api.schemas.workflow import (
    JobCancelResponse,
    JobStatusResponse,
    WorkflowResultResponse,
)
from storyreel.core.exceptions import (
    JobNotFoundError,
    ManagerNotInitializedError,
    UnsupportedWorkflowTypeError,
    WorkflowValidationError,
)
from storyreel.models.workflow import WorkflowConfig
from storyreel.services.workflow_manager import WorkflowManager

router = APIRouter(prefix="/workflows", tags=["workflows"])


def _job_not_found(e: JobNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error_detail(ResponseCodes.JOB_NOT_FOUND, "NOT_FOUND", str(e)),
    )


@router.post("/execute", response_model=StandardResponse[WorkflowResultResponse])
async def execute_workflow(
    config: WorkflowConfig,
    manager: WorkflowManager = Depends(get_workflow_manager),
) -> StandardResponse[WorkflowResultResponse]:
    """
    Submit a workflow for execution.

    - Returns immediately with the job id to poll
    - A backend that refuses the workflow yields success=false, not an error status
    """
    try:
        result = await manager.execute(config)
    except WorkflowValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_detail(
                ResponseCodes.WORKFLOW_INVALID, "UNPROCESSABLE_ENTITY", str(e), data=e.errors
            ),
        )
    except UnsupportedWorkflowTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail(
                ResponseCodes.WORKFLOW_TYPE_UNSUPPORTED, "BAD_REQUEST", str(e)
            ),
        )
    except ManagerNotInitializedError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_detail(
                ResponseCodes.SERVICE_UNAVAILABLE, "SERVICE_UNAVAILABLE", str(e)
            ),
        )

    response = WorkflowResultResponse(
        success=result.success,
        job_id=result.job_id,
        result=result.result,
        error=result.error,
        execution_time=result.execution_time,
    )
    if result.success:
        return StandardResponse(
            data=response,
            code=ResponseCodes.WORKFLOW_SUBMITTED,
            httpStatus="OK",
            description="Workflow submitted successfully",
        )
    return StandardResponse(
        data=response,
        code=ResponseCodes.WORKFLOW_EXECUTION_FAILED,
        httpStatus="OK",
        description=result.error or "Workflow could not be started",
    )


@router.get("/jobs", response_model=StandardResponse[List[JobStatusResponse]])
async def list_jobs(
    manager: WorkflowManager = Depends(get_workflow_manager),
) -> StandardResponse[List[JobStatusResponse]]:
    """List every job tracked since startup."""
    jobs = await manager.list_jobs()
    return StandardResponse(
        data=[JobStatusResponse.model_validate(job) for job in jobs],
        code=ResponseCodes.JOBS_LISTED,
        httpStatus="OK",
        description=f"Retrieved {len(jobs)} jobs",
    )


@router.get("/jobs/{job_id}", response_model=StandardResponse[JobStatusResponse])
async def get_job_status(
    job_id: str,
    manager: WorkflowManager = Depends(get_workflow_manager),
) -> StandardResponse[JobStatusResponse]:
    """
    Get job status.

    Returns status, progress estimate and, once finished, the result.
    """
    try:
        job = await manager.get_status(job_id)
    except JobNotFoundError as e:
        raise _job_not_found(e)

    return StandardResponse(
        data=JobStatusResponse.model_validate(job),
        code=ResponseCodes.JOB_RETRIEVED,
        httpStatus="OK",
        description="Job retrieved successfully",
    )


@router.post("/jobs/{job_id}/cancel", response_model=StandardResponse[JobCancelResponse])
async def cancel_job(
    job_id: str,
    manager: WorkflowManager = Depends(get_workflow_manager),
) -> StandardResponse[JobCancelResponse]:
    """
    Cancel a job.

    - Cancelling a job that already finished is a no-op
    - Returns the job's resulting status
    """
    try:
        await manager.cancel(job_id)
        job = await manager.get_status(job_id)
    except JobNotFoundError as e:
        raise _job_not_found(e)

    return StandardResponse(
        data=JobCancelResponse(job_id=job.id, status=job.status, message=job.message),
        code=ResponseCodes.JOB_CANCELED,
        httpStatus="OK",
        description="Job cancel request processed",
    )
