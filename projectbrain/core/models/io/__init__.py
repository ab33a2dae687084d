"""
Request and response schemas for the REST API.

One module per router area. Shared pieces (paging, the error body) live in
``common``; entity tables are never returned directly.
"""

from .common import ErrorResponse, MessageResponse, PagedRequest, PagedResponse

__all__ = ["ErrorResponse", "MessageResponse", "PagedRequest", "PagedResponse"]
