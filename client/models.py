"""Client response models for the VTS API client.

This module re-exports shared models from the API layer and defines
client-specific response models that don't exist there.
"""

from pydantic import BaseModel, Field

from api.models import ErrorResponse, OperationResponse

__all__ = [
    "ErrorResponse",
    "OperationResponse",
    "HealthResponse",
    "ServerInfoResponse",
]


class HealthResponse(BaseModel):
    status: str = Field(..., description="Health status, 'healthy' when up")


class ServerInfoResponse(BaseModel):
    """Response model for the root endpoint.

    Attributes:
        message: Welcome message.
        version: Server version string.
        docs_url: Path of the interactive API docs.
    """

    message: str
    version: str
    docs_url: str
