"""Shared request and response models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class PathRequest(BaseModel):
    """Request body naming a single path.

    Attributes:
        path: Absolute or cursor-relative path.
    """

    path: str = Field(..., min_length=1, description="Target path")


class OperationResponse(BaseModel):
    """Generic acknowledgement for mutating endpoints.

    Attributes:
        message: Human-readable summary of what happened.
        path: Absolute path affected, when there is one.
    """

    message: str
    path: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error title.
        detail: Human-readable error message.
        path: Path involved, for file-system errors.
    """

    error: str
    detail: str
    path: str | None = None
    details: dict[str, Any] | None = None


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorResponse, "description": "Path or package not found"},
    409: {"model": ErrorResponse, "description": "Conflicting node type or state"},
}
