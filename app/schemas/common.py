"""
Common schemas used across the API.

Field names are snake_case in Python and camelCase on the wire, matching the
React admin client. Requests accept either spelling.
"""

from typing import Optional, Generic, TypeVar, List, Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginatedResponse(CamelModel, Generic[T]):
    """Generic paginated response wrapper."""

    success: bool = True
    items: List[T]
    total: int = Field(description="Total number of items matching filters")
    page: int = Field(description="Current page number")
    per_page: int = Field(description="Items per page")
    pages: int = Field(description="Total number of pages")

    @classmethod
    def create(
        cls,
        items: List[T],
        total: int,
        page: int,
        per_page: int,
    ) -> "PaginatedResponse[T]":
        """Factory method to create paginated response."""
        pages = (total + per_page - 1) // per_page if per_page > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            pages=pages,
        )


class SuccessResponse(CamelModel):
    """Generic success response."""

    success: bool = True
    message: str = "Operation completed successfully"


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    success: bool = False
    message: str = Field(description="Human-readable error message")
    errors: Optional[List[FieldError]] = Field(default=None, description="Per-field validation errors")
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    success: bool = True
    status: str = "healthy"
    version: str
    database: str = "connected"
    timestamp: datetime


def error_body(message: str, **extra: Any) -> dict:
    """Serialize an ErrorResponse, dropping unset optional fields."""
    return ErrorResponse(message=message, **extra).model_dump(exclude_none=True)
