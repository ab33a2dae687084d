"""
Health Check Endpoints.

Liveness (``/health``), readiness (``/health/ready``) and version endpoints
used by the load balancer and deployment checks.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from projectbrain.core.cache import ping_redis
from projectbrain.core.database import check_database
from projectbrain.server.core import constant

router = APIRouter()


@router.get("/health", summary="Health Check", description="Liveness check. Does not touch dependencies.")
async def health_check():
    return {"status": "ok"}


@router.get(
    "/health/ready",
    summary="Readiness Check",
    description="Check that the database and Redis are reachable.",
    responses={503: {"description": "The database is unreachable"}},
)
async def readiness_check():
    """
    Readiness check.

    Redis only backs the activity cache, which falls back to the database, so
    a Redis outage is reported but still answers 200.
    """
    db_error = await check_database()
    redis_ok = await ping_redis()
    body = {
        "status": "ok" if db_error is None else "unavailable",
        "database": db_error is None,
        "redis": redis_ok,
    }
    return JSONResponse(status_code=200 if db_error is None else 503, content=body)


@router.get("/version", summary="Get Version", description="Retrieve version information for the API server.")
async def version():
    return {"version": constant.VERSION, "schema_version": constant.SCHEMA_VERSION}
