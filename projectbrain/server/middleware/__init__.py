"""
Middleware modules for the ProjectBrain server.

Request timing and Logfire reporting, plus user activity recording.
"""

from .logfire_middleware import LogfireMiddleware
from .user_activity import UserActivityMiddleware

__all__ = ["LogfireMiddleware", "UserActivityMiddleware"]
