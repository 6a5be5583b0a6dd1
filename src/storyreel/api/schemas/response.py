"""Standard API response schemas."""
from typing import Any, Dict, Optional, Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar('T')


class StandardResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    data: T = Field(..., description="Response data")
    code: str = Field(..., description="Response code")
    httpStatus: str = Field(..., description="HTTP status text")
    description: str = Field(..., description="Response description")

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """Standard error response."""

    data: Optional[Any] = Field(None, description="Error details")
    code: str = Field(..., description="Error code")
    httpStatus: str = Field(..., description="HTTP status text")
    description: str = Field(..., description="Error description")

    model_config = {"from_attributes": True}


def error_detail(code: str, http_status: str, description: str, data: Any = None) -> Dict[str, Any]:
    """Build the HTTPException detail payload in ErrorResponse shape."""
    return ErrorResponse(
        data=data, code=code, httpStatus=http_status, description=description
    ).model_dump()


# Response codes
class ResponseCodes:
    """Standard response codes."""

    # Success codes (2xx)
    WORKFLOW_SUBMITTED = "WF_0001"
    WORKFLOW_EXECUTION_FAILED = "WF_0002"
    WORKFLOW_SAVED = "WF_0003"
    WORKFLOW_RETRIEVED = "WF_0004"
    WORKFLOWS_LISTED = "WF_0005"

    JOB_RETRIEVED = "JOB_0001"
    JOB_CANCELED = "JOB_0002"
    JOBS_LISTED = "JOB_0003"

    HEALTH_OK = "HEALTH_0001"

    # Error codes (4xx, 5xx)
    JOB_NOT_FOUND = "JOB_4001"

    WORKFLOW_NOT_FOUND = "WF_4001"
    WORKFLOW_INVALID = "WF_4002"
    WORKFLOW_TYPE_UNSUPPORTED = "WF_4003"

    VALIDATION_ERROR = "ERR_4001"
    INTERNAL_ERROR = "ERR_5001"
    PERSISTENCE_UNAVAILABLE = "ERR_5011"
    SERVICE_UNAVAILABLE = "ERR_5031"
