"""
Domain Exception Handler.

Maps ``AppException`` and its subclasses raised by services to the
``{"error": {"code", "message", "details"}}`` response body.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger

logger = get_logger(__name__)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Render a domain exception with its own status code.

    Args:
        request: The HTTP request that caused the exception
        exc: The domain exception that was raised

    Returns:
        JSONResponse with the error code, message and optional details
    """
    log = logger.warning if exc.status_code >= 500 else logger.info
    log(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}",
        extra={"error_code": exc.code, "status_code": exc.status_code, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
