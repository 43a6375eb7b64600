"""Common models used across the application."""
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, Field

from peer_rounds.errors import RoundEngineError

T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """Typed success/failure result returned by request-path operations."""
    success: bool
    data: Optional[T] = None
    message: str = "Operation successful"
    status_code: int = 200
    error_code: Optional[str] = None

    @classmethod
    def create_success(cls, data: T, status_code: int = 200) -> "ServiceResult[T]":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def create_error(cls, error: RoundEngineError) -> "ServiceResult[T]":
        return cls(
            success=False,
            data=None,
            message=error.message,
            status_code=error.status_code,
            error_code=error.code,
        )


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Overall health status")
    timestamp: str = Field(..., description="ISO timestamp")
    version: str = Field(..., description="Application version")
    dependencies: dict[str, str] = Field(
        ...,
        description="Status of each dependency"
    )


class ErrorResponse(BaseModel):
    """Standard error response model."""
    detail: str
    error_code: str | None = None


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    id: str | None = None
