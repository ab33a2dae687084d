"""
User Activity Middleware.

Records activity for every request that carries the ``X-User-Id`` header.
Recording happens after the response is produced and never fails the
request.
"""

from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from projectbrain.core.logging_config import get_logger
from projectbrain.services.user_activity import UserActivityService

logger = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"


class UserActivityMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, activity_factory: Callable[[], Optional[UserActivityService]]) -> None:
        super().__init__(app)
        self.activity_factory = activity_factory

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        user_id = request.headers.get(USER_ID_HEADER)
        if user_id:
            try:
                activity = self.activity_factory()
                if activity is not None:
                    await activity.update_last_activity(user_id)
            except Exception as e:
                logger.warning(f"Failed to record activity for user {user_id}: {e}")
        return response
