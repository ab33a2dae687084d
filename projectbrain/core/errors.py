"""
Domain exceptions.

Services raise these to signal business-rule failures. The server maps them
to the ``{"error": {"code", "message", "details"}}`` response body.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base class for errors that carry an error code and HTTP status."""

    def __init__(self, code: str, message: str, status_code: int = 400, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return {"error": error}


class NotFoundException(AppException):
    """Requested entity does not exist or is not visible to the caller."""

    def __init__(self, message: str, code: str = "NOT_FOUND") -> None:
        super().__init__(code, message, status_code=404)


class ValidationException(AppException):
    """Input violated a business rule."""

    def __init__(
        self, message: str, errors: Optional[Dict[str, Any]] = None, code: str = "VALIDATION_ERROR"
    ) -> None:
        super().__init__(code, message, status_code=400, details=errors)
        self.errors = errors or {}


class ForbiddenException(AppException):
    """Caller is authenticated but not allowed to perform the action."""

    def __init__(self, message: str, code: str = "FORBIDDEN") -> None:
        super().__init__(code, message, status_code=403)


class LimitExceededException(AppException):
    """A plan limit blocks the action."""

    def __init__(self, message: str, code: str = "LIMIT_EXCEEDED") -> None:
        super().__init__(code, message, status_code=429)
