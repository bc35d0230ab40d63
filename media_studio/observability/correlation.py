"""
Request correlation ids.

Every request handled by the API gets an id, taken from an incoming
X-Correlation-ID (or X-Request-ID) header when the caller sent one. The id
lives in a ContextVar so log records emitted anywhere in the request,
including background cleanup, carry it.

Dependencies: contextvars
System role: Request tracing across log lines
"""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

CORRELATION_HEADERS = ("X-Correlation-ID", "X-Request-ID")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def correlation_id_from_headers(headers: Mapping[str, str]) -> str:
    """First correlation header present, else a fresh uuid4."""
    for name in CORRELATION_HEADERS:
        value = headers.get(name)
        if value:
            return value[:128]
    return uuid.uuid4().hex


def get_correlation_id() -> str:
    return _correlation_id.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind a correlation id for the duration of the block."""
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)
