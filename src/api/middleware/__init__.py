"""API middleware components."""

from src.api.middleware.error_handler import error_handler_middleware, handle_exception
from src.api.middleware.logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
    "error_handler_middleware",
    "handle_exception",
]
