"""
FastAPI middleware for observability.

CorrelationMiddleware binds a correlation id per request and echoes it
back. RequestLoggingMiddleware logs one line per request with the body
kind, status and duration; health probes are logged at DEBUG.

Dependencies: fastapi, starlette, media_studio.observability
System role: Request/response observability injection
"""

import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from media_studio.observability.correlation import (
    CORRELATION_HEADERS,
    correlation_id_from_headers,
    correlation_scope,
)

logger = logging.getLogger(__name__)

QUIET_PATH_PREFIXES = ("/health",)


def _body_kind(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        return "multipart"
    if "application/json" in content_type:
        return "json"
    return content_type.split(";")[0] or None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request's outcome and timing."""

    async def dispatch(self, request: Request, call_next):
        method = request.method
        path = request.url.path
        level = logging.DEBUG if path.startswith(QUIET_PATH_PREFIXES) else logging.INFO
        started = time.perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"{method} {path} - unhandled {type(e).__name__}",
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.log(
            level,
            f"{method} {path} - {response.status_code} ({duration_ms} ms)",
            extra={
                "method": method,
                "path": path,
                "body_kind": _body_kind(request),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "client_host": request.client.host if request.client else None,
            },
        )
        return response


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id for the request and return it as a header."""

    async def dispatch(self, request: Request, call_next):
        with correlation_scope(correlation_id_from_headers(request.headers)) as correlation_id:
            response: Response = await call_next(request)
        response.headers[CORRELATION_HEADERS[0]] = correlation_id
        return response
