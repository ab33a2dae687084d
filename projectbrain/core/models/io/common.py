"""
Shared I/O models: pagination and error bodies.
"""

from __future__ import annotations

import math
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class PagedRequest(BaseModel):
    """Page/page-size query parameters."""

    page: int = Field(default=1, description="1-based page number")
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, description="Items per page (max 100)")

    @field_validator("page")
    @classmethod
    def _clamp_page(cls, value: int) -> int:
        return max(1, value)

    @field_validator("page_size")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        if value < 1:
            return DEFAULT_PAGE_SIZE
        return min(value, MAX_PAGE_SIZE)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def take(self) -> int:
        return self.page_size


class PagedResponse(BaseModel, Generic[T]):
    """One page of results with navigation metadata."""

    items: List[T]
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool

    @classmethod
    def build(cls, items: List[Any], request: PagedRequest, total_count: int) -> "PagedResponse[T]":
        total_pages = math.ceil(total_count / request.page_size) if total_count else 0
        return cls(
            items=items,
            page=request.page,
            page_size=request.page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_previous_page=request.page > 1,
            has_next_page=request.page < total_pages,
        )


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Body returned for domain errors."""

    error: ErrorDetail


class MessageResponse(BaseModel):
    message: str
