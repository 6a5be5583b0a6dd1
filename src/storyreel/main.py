"""FastAPI application factory."""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from storyreel.adapters import ToolProvider, build_adapter_registry
from storyreel.api.v1 import health, metrics, projects, workflows
from storyreel.config import get_settings
from storyreel.core.database import SessionLocal, init_db
from storyreel.core.logging import configure_logging
from storyreel.observability.metrics import init_system_info
from storyreel.observability.middleware import MetricsMiddleware
from storyreel.services.workflow_manager import WorkflowManager
from storyreel.services.workflow_store import WorkflowStore

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the workflow manager on startup and clean it up on shutdown."""
    configure_logging()
    if app.state.create_tables:
        init_db()

    manager: WorkflowManager = app.state.workflow_manager
    if not manager.is_initialized:
        await manager.initialize()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} started")

    try:
        yield
    finally:
        await manager.cleanup()
        logger.info(f"{settings.APP_NAME} stopped")


def create_app(
    workflow_manager: Optional[WorkflowManager] = None,
    workflow_store: Optional[WorkflowStore] = None,
    tool_provider: Optional[ToolProvider] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        workflow_manager: Manager to serve, built from settings when omitted
        workflow_store: Workflow persistence, the configured database when omitted
        tool_provider: Capability provider for tool-call workflows

    Returns:
        FastAPI: Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    if workflow_manager is None:
        workflow_manager = WorkflowManager(
            build_adapter_registry(settings, tool_provider=tool_provider)
        )
    app.state.workflow_manager = workflow_manager
    app.state.create_tables = workflow_store is None
    app.state.workflow_store = workflow_store or WorkflowStore(SessionLocal)

    # Add middleware
    app.add_middleware(MetricsMiddleware, metrics_path=f"{settings.API_V1_PREFIX}/metrics")

    # Initialize metrics
    init_system_info(settings.APP_VERSION)

    # Include routers
    app.include_router(workflows.router, prefix=settings.API_V1_PREFIX)
    app.include_router(projects.router, prefix=settings.API_V1_PREFIX)
    app.include_router(health.router, prefix=settings.API_V1_PREFIX, tags=["health"])
    app.include_router(metrics.router, prefix=settings.API_V1_PREFIX)

    return app


# Create app instance
app = create_app()
