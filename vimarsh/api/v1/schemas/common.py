"""
Shared schema building blocks: camelCase base model and the response envelope.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for request/response bodies: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(CamelModel, Generic[T]):
    """Envelope for every successful response."""

    success: bool = Field(default=True, description="Always true for successful responses")
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Response payload")


class ErrorResponse(CamelModel):
    """Envelope for every failed response."""

    success: bool = Field(default=False)
    message: str = Field(..., description="Human-readable error")
    errors: Optional[dict[str, Any]] = Field(default=None, description="Field -> message map")
    error: Optional[str] = Field(default=None, description="Internal detail (debug only)")


class MessageResponse(CamelModel):
    """Envelope without payload."""

    success: bool = True
    message: str


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    403: {"model": ErrorResponse, "description": "Token lacks the required role"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Uniqueness conflict"},
    500: {"model": ErrorResponse, "description": "Server or upstream failure"},
}
