"""
Exception handlers for the ProjectBrain server.

Domain errors, database constraint violations and a catch-all 500 handler,
registered together by ``setup_exception_handlers``.
"""

from .app_handler import app_exception_handler
from .global_handler import global_exception_handler, integrity_error_handler, setup_exception_handlers

__all__ = [
    "app_exception_handler",
    "global_exception_handler",
    "integrity_error_handler",
    "setup_exception_handlers",
]
