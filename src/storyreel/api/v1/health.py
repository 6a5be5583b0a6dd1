"""Health check API endpoint."""
from typing import Any, Dict
from fastapi import APIRouter, Request
from pydantic import BaseModel
from sqlalchemy import text
from storyreel.api.schemas.response import StandardResponse, ResponseCodes

router = APIRouter()


class HealthData(BaseModel):
    """Health check data model."""

    status: str
    workflow_manager: str
    persistence: str
    adapters: Dict[str, Dict[str, Any]] = {}


@router.get("/health", response_model=StandardResponse[HealthData])
async def health_check(request: Request) -> StandardResponse[HealthData]:
    """
    Health check endpoint.

    Returns:
        StandardResponse: Service health including adapter state and persistence
    """
    manager = getattr(request.app.state, "workflow_manager", None)
    if manager is not None and manager.is_initialized:
        manager_status = "initialized"
        adapters = manager.adapter_health()
    else:
        manager_status = "uninitialized"
        adapters = {}

    # Check database connection
    store = getattr(request.app.state, "workflow_store", None)
    if store is None or not store.available:
        persistence_status = "unavailable"
    else:
        try:
            session = store.session_factory()
            try:
                session.execute(text("SELECT 1"))
            finally:
                session.close()
            persistence_status = "connected"
        except Exception:
            persistence_status = "disconnected"

    overall_status = "healthy"
    if manager_status != "initialized" or persistence_status == "disconnected":
        overall_status = "unhealthy"

    health_data = HealthData(
        status=overall_status,
        workflow_manager=manager_status,
        persistence=persistence_status,
        adapters=adapters,
    )

    return StandardResponse(
        data=health_data,
        code=ResponseCodes.HEALTH_OK,
        httpStatus="OK",
        description="Health check completed successfully",
    )
