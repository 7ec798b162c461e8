"""Error handling middleware.

Every failure leaves the API as ``{message, code, details, request_id}``.
Domain exceptions map to client errors; anything else is logged with its
traceback and reported as a generic 500.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    InvalidChunkException,
    UploadMissingFileException,
    VideoNotFoundException,
    VideoStorageException,
    VideoValidationException,
)

logger = get_logger(__name__)


@dataclass
class ErrorBody:
    """What a failed request answers with."""

    status_code: int
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    log_level: int = logging.WARNING


def _describe(exc: Exception) -> ErrorBody | None:
    """Map a domain exception to its response, None for unexpected errors."""
    if isinstance(exc, VideoValidationException):
        return ErrorBody(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "VALIDATION_ERROR",
            "The given data was invalid.",
            details=dict(exc.errors),
        )
    if isinstance(exc, VideoNotFoundException):
        return ErrorBody(
            status.HTTP_404_NOT_FOUND,
            "VIDEO_NOT_FOUND",
            "Video not found",
            details={"video_id": exc.video_id},
        )
    if isinstance(exc, UploadMissingFileException):
        return ErrorBody(
            status.HTTP_400_BAD_REQUEST,
            "UPLOAD_MISSING_FILE",
            str(exc),
            details={"field": exc.field},
        )
    if isinstance(exc, InvalidChunkException):
        return ErrorBody(status.HTTP_400_BAD_REQUEST, "INVALID_CHUNK", str(exc))
    if isinstance(exc, VideoStorageException):
        # Reason goes to the log only
        return ErrorBody(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "STORAGE_ERROR",
            "Failed to save file",
            details={"path": exc.path},
            log_level=logging.ERROR,
        )
    if isinstance(exc, DomainException):
        return ErrorBody(status.HTTP_400_BAD_REQUEST, "DOMAIN_ERROR", str(exc))
    return None


def _error_response(request: Request, body: ErrorBody) -> JSONResponse:
    return JSONResponse(
        status_code=body.status_code,
        content={
            "message": body.message,
            "code": body.code,
            "details": body.details,
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )


def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Turn an exception raised by a route into an error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    body = _describe(exc)
    if body is None:
        logger.exception(
            "Unexpected error",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        body = ErrorBody(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred",
        )
        return _error_response(request, body)

    logger.log(
        body.log_level,
        f"Request failed: {body.code}",
        extra={
            "path": request.url.path,
            "error_code": body.code,
            "error_message": str(exc),
        },
    )
    return _error_response(request, body)


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return handle_exception(request, exc)
