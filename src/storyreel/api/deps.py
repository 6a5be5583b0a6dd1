"""API dependencies for FastAPI."""
from fastapi import HTTPException, Request, status
from storyreel.api.schemas.response import ResponseCodes, error_detail
from storyreel.services.workflow_manager import WorkflowManager
from storyreel.services.workflow_store import WorkflowStore


def get_workflow_manager(request: Request) -> WorkflowManager:
    """
    Dependency to get the application's WorkflowManager.

    Raises:
        HTTPException: 503 if the manager is not initialized
    """
    manager = getattr(request.app.state, "workflow_manager", None)
    if manager is None or not manager.is_initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_detail(
                ResponseCodes.SERVICE_UNAVAILABLE,
                "SERVICE_UNAVAILABLE",
                "Workflow manager is not initialized",
            ),
        )
    return manager


def get_workflow_store(request: Request) -> WorkflowStore:
    """
    Dependency to get the application's WorkflowStore.

    Returns a store without persistence when none is configured, so its
    operations report PersistenceUnavailableError.
    """
    store = getattr(request.app.state, "workflow_store", None)
    return store if store is not None else WorkflowStore()
