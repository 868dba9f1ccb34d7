"""
Common schemas used across the API.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Envelope returned by every successful endpoint."""

    success: bool = True
    message: str = "Operation completed successfully"
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope returned by every failed request."""

    success: bool = False
    message: str = Field(description="Human-readable error message")
    errors: Optional[list[Any]] = Field(default=None, description="Per-field validation errors")
    request_id: Optional[str] = None


class PaginationParams(BaseModel):
    """Pagination parameters for list endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=10, ge=1, le=100, description="Items per page (max 100)")

    @property
    def offset(self) -> int:
        """Calculate SQL offset from page number."""
        return (self.page - 1) * self.limit


class Pagination(BaseModel):
    """Pagination block attached to list payloads."""

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def create(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit) if limit > 0 else 0,
            total_items=total,
            items_per_page=limit,
        )
