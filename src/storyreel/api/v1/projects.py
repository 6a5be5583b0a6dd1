"""Per-project saved workflow API endpoints."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from storyreel.api.deps import get_workflow_store
from storyreel.api.schemas.response import StandardResponse, ResponseCodes, error_detail
from storyreel.core.exceptions import PersistenceUnavailableError, WorkflowNotFoundError
from storyreel.models.workflow import WorkflowConfig
from storyreel.services.workflow_store import WorkflowStore

router = APIRouter(prefix="/projects", tags=["projects"])


def _persistence_unavailable(e: PersistenceUnavailableError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail=error_detail(
            ResponseCodes.PERSISTENCE_UNAVAILABLE, "NOT_IMPLEMENTED", str(e)
        ),
    )


@router.get("/{project_id}/workflows", response_model=StandardResponse[List[WorkflowConfig]])
def list_workflows(
    project_id: str,
    store: WorkflowStore = Depends(get_workflow_store),
) -> StandardResponse[List[WorkflowConfig]]:
    """List workflows saved in a project."""
    try:
        workflows = store.list_workflows(project_id)
    except PersistenceUnavailableError as e:
        raise _persistence_unavailable(e)

    return StandardResponse(
        data=workflows,
        code=ResponseCodes.WORKFLOWS_LISTED,
        httpStatus="OK",
        description=f"Retrieved {len(workflows)} workflows",
    )


@router.put("/{project_id}/workflows", response_model=StandardResponse[WorkflowConfig])
def save_workflow(
    project_id: str,
    config: WorkflowConfig,
    store: WorkflowStore = Depends(get_workflow_store),
) -> StandardResponse[WorkflowConfig]:
    """Save a workflow, replacing an earlier version with the same id."""
    try:
        saved = store.save_workflow(project_id, config)
    except PersistenceUnavailableError as e:
        raise _persistence_unavailable(e)

    return StandardResponse(
        data=saved,
        code=ResponseCodes.WORKFLOW_SAVED,
        httpStatus="OK",
        description="Workflow saved successfully",
    )


@router.get(
    "/{project_id}/workflows/{workflow_id}",
    response_model=StandardResponse[WorkflowConfig],
)
def load_workflow(
    project_id: str,
    workflow_id: str,
    store: WorkflowStore = Depends(get_workflow_store),
) -> StandardResponse[WorkflowConfig]:
    """Load a saved workflow."""
    try:
        workflow = store.load_workflow(project_id, workflow_id)
    except PersistenceUnavailableError as e:
        raise _persistence_unavailable(e)
    except WorkflowNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(ResponseCodes.WORKFLOW_NOT_FOUND, "NOT_FOUND", str(e)),
        )

    return StandardResponse(
        data=workflow,
        code=ResponseCodes.WORKFLOW_RETRIEVED,
        httpStatus="OK",
        description="Workflow retrieved successfully",
    )
