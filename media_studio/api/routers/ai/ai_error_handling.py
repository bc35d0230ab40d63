"""
AI endpoint error handling utilities.

Provides the JSON response helper, CORS headers and a decorator that turns
every failure inside the endpoint into the uniform {success: false, error}
shape.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import Request, status
from fastapi.responses import JSONResponse

from media_studio.core.exceptions import (
    ConfigurationError,
    JobRecordNotFoundError,
    ProviderError,
    RelayError,
    RequestValidationError,
    StudioException,
)
from media_studio.models.common import ErrorResponse

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}
CORS_PREFLIGHT_HEADERS = {
    **CORS_HEADERS,
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Runway-Version",
}


def json_response(data: dict, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """JSON response carrying the permissive CORS origin header."""
    return JSONResponse(content=data, status_code=status_code, headers=CORS_HEADERS)


def error_response(message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> JSONResponse:
    return json_response(ErrorResponse(error=message).model_dump(), status_code)


def _log_studio_error(e: StudioException) -> None:
    if isinstance(e, ConfigurationError):
        logger.error("Runtime configuration missing", extra={"missing": ", ".join(e.missing)})
    elif isinstance(e, RequestValidationError):
        logger.warning("Invalid /ai request", extra={"field": e.field, "error": e.message})
    elif isinstance(e, ProviderError):
        logger.error(
            "Generation provider error",
            extra={"operation": e.operation, "status_code": e.status_code, "error": e.message},
        )
    elif isinstance(e, (RelayError, JobRecordNotFoundError)):
        logger.error(
            "Reconciliation failed",
            extra={"task_id": getattr(e, "task_id", None), "error": e.message},
        )
    else:
        logger.error("Request failed", extra={"error": str(e)})


def handle_ai_errors(func: F) -> F:
    """
    Decorator to convert endpoint failures into the uniform error payload.

    This centralizes:
    - Logging of errors with context (task id, provider operation)
    - Mapping every failure to HTTP 500 with {success: false, error}
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except StudioException as e:
            _log_studio_error(e)
            return error_response(e.message)

        except Exception as e:
            logger.exception(
                "Unexpected failure in /ai request",
                extra={"error_type": type(e).__name__, "error": str(e)},
            )
            return error_response(str(e) or type(e).__name__)

    return wrapper  # type: ignore


async def studio_exception_handler(request: Request, exc: StudioException) -> JSONResponse:
    """App-level handler for errors raised while resolving dependencies."""
    _log_studio_error(exc)
    return error_response(exc.message)
