"""
Response schemas for API endpoints.

Every REST endpoint answers with the same envelope:
- SuccessResponse: ``{success: true, message, data}``
- ErrorResponse: ``{success: false, message, data: null, error: {code, details?}}``
"""

from typing import TypeVar, Generic, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


class BaseResponse(BaseModel):
    """Base response model with common fields."""

    success: bool = Field(..., description="Indicates whether the request was successful")
    message: Optional[str] = Field(None, description="Optional message for additional context")


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic successful response wrapper.

    Example:
        SuccessResponse[WorkspaceOut] for a single workspace
        SuccessResponse[WorkspaceListOut] for the workspace grid
    """

    success: bool = Field(True, description="Always true for successful responses")
    data: T = Field(..., description="Response data")


class ErrorResponse(BaseResponse):
    """Error response with detailed error information."""

    success: bool = Field(False, description="Always false for error responses")
    data: None = Field(None, description="Always null for error responses")
    error: Optional[dict] = Field(
        None,
        description="Error details including code and optional details",
        examples=[
            {"code": "NOT_FOUND"},
            {"code": "SPAWN_FAILED"},
            {"code": "VALIDATION_ERROR", "details": [{"loc": ["body", "name"], "msg": "Field required"}]}
        ]
    )
