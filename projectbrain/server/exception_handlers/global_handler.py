"""
Fallback exception handlers.

Database constraint violations that slip past service checks (two requests
racing to create the same tag, say) become ``409 CONFLICT``. Everything else
is logged with an error ID and answered with a generic 500.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from projectbrain.core.errors import AppException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.monitoring import log_error

from .app_handler import app_exception_handler

logger = get_logger(__name__)


def _request_context(request: Request) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "user_id": request.headers.get("X-User-Id"),
        "client": request.client.host if request.client else "unknown",
    }


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        f"Constraint violation in {request.method} {request.url.path}: {exc.orig}",
        extra=_request_context(request),
    )
    conflict = AppException("CONFLICT", "The request conflicts with existing data", status_code=409)
    return JSONResponse(status_code=conflict.status_code, content=conflict.to_dict())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Log an unhandled exception and return a 500 carrying an error ID.

    Clients can quote the error ID when reporting the problem; it appears in
    the server log next to the full traceback.
    """
    error_id = id(exc)
    context = _request_context(request)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"error_id": error_id, "error_type": type(exc).__name__, **context},
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, **context})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the domain, constraint and fallback handlers on ``app``."""
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)
